"""
TTL policy table for the facade cache.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .keys import CacheKey, CacheKind

DEFAULT_RESOURCE_TTL = 600
DEFAULT_LISTING_TTL = 600
DEFAULT_BOUNDED_LISTING_TTL = 300
DEFAULT_FILTERED_LISTING_TTL = 300

# Entity-specific overrides win over the kind-wide default.
WILDCARD = "*"


@dataclass(frozen=True)
class CachePolicy:
    """Declarative {entity, cache kind} -> TTL table, built once at startup."""

    ttls: Dict[Tuple[str, CacheKind], int] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config) -> "CachePolicy":
        """Build the table from service settings."""
        return cls({
            (WILDCARD, CacheKind.RESOURCE): int(getattr(config, "cache_resource_ttl", DEFAULT_RESOURCE_TTL)),
            (WILDCARD, CacheKind.LISTING): int(getattr(config, "cache_listing_ttl", DEFAULT_LISTING_TTL)),
            (WILDCARD, CacheKind.BOUNDED_LISTING): int(
                getattr(config, "cache_bounded_listing_ttl", DEFAULT_BOUNDED_LISTING_TTL)
            ),
            ("observation", CacheKind.FILTERED_LISTING): int(
                getattr(config, "cache_filtered_listing_ttl", DEFAULT_FILTERED_LISTING_TTL)
            ),
        })

    @classmethod
    def default(cls) -> "CachePolicy":
        return cls({
            (WILDCARD, CacheKind.RESOURCE): DEFAULT_RESOURCE_TTL,
            (WILDCARD, CacheKind.LISTING): DEFAULT_LISTING_TTL,
            (WILDCARD, CacheKind.BOUNDED_LISTING): DEFAULT_BOUNDED_LISTING_TTL,
            ("observation", CacheKind.FILTERED_LISTING): DEFAULT_FILTERED_LISTING_TTL,
        })

    def ttl_for(self, resource_type: str, key: CacheKey) -> int:
        """Resolve the TTL in seconds for a key of the given entity."""
        entity = resource_type.lower()
        ttl: Optional[int] = self.ttls.get((entity, key.kind))
        if ttl is None:
            ttl = self.ttls.get((WILDCARD, key.kind))
        if ttl is None:
            raise KeyError(f"No cache TTL configured for {entity}/{key.kind.value}")
        return ttl
