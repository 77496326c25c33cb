"""
Facade cache manager.

Wraps the raw cache store so that the cache behaves as a best-effort side
channel: a failing lookup is a miss, a failing write or invalidation is
logged and skipped, and the primary request always proceeds against the
FHIR server.
"""

import json
from typing import Any, Iterable, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .keys import CacheKey
from .policy import CachePolicy

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .cache_store import RedisCacheStore
    from shared.metrics import MetricsCollector


class CacheManager:
    """JSON cache over a string store, with TTLs resolved from a policy table."""

    def __init__(
        self,
        store: "RedisCacheStore",
        policy: Optional[CachePolicy] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.policy = policy or CachePolicy.default()
        self.metrics = metrics
        self.logger = get_logger("fhir.cache_manager")

    async def get_json(self, key: CacheKey) -> Optional[Any]:
        """Return the cached JSON value for ``key``, or None on miss or cache failure."""
        try:
            cached = await self.store.get_string(key.value)
        except Exception as exc:
            self.logger.error("Cache fetch error", key=key.value, error=str(exc))
            self._count("cache_errors_total", operation="get")
            return None

        if not cached:
            self._count("cache_lookups_total", cache_kind=key.kind.value, result="miss")
            return None

        try:
            value = json.loads(cached)
        except (TypeError, json.JSONDecodeError):
            self.logger.warning("Failed to deserialize cached payload", key=key.value)
            self._count("cache_lookups_total", cache_kind=key.kind.value, result="miss")
            return None

        self._count("cache_lookups_total", cache_kind=key.kind.value, result="hit")
        return value

    async def set_json(self, resource_type: str, key: CacheKey, value: Any) -> bool:
        """Store ``value`` under ``key`` with the policy TTL."""
        ttl = self.policy.ttl_for(resource_type, key)
        try:
            await self.store.set_string(key.value, json.dumps(value), ttl)
            return True
        except Exception as exc:
            self.logger.error("Cache set error", key=key.value, ttl=ttl, error=str(exc))
            self._count("cache_errors_total", operation="set")
            return False

    async def invalidate(
        self,
        resource_type: str,
        keys: Iterable[CacheKey],
        patterns: Iterable[str] = (),
    ) -> bool:
        """Remove keys and key patterns; returns False if any removal failed."""
        success = True
        removed = []

        for key in keys:
            try:
                await self.store.remove(key.value)
                removed.append(key.value)
            except Exception as exc:
                success = False
                self.logger.error("Cache invalidation error", key=key.value, error=str(exc))
                self._count("cache_errors_total", operation="remove")

        for pattern in patterns:
            try:
                await self.store.remove_pattern(pattern)
                removed.append(pattern)
            except Exception as exc:
                success = False
                self.logger.error("Cache pattern invalidation error", pattern=pattern, error=str(exc))
                self._count("cache_errors_total", operation="remove_pattern")

        if removed:
            for _ in removed:
                self._count("cache_invalidations_total", resource_type=resource_type.lower())
            self.logger.info("Invalidated cache", resource_type=resource_type, keys=removed)
        return success

    async def check_health(self) -> str:
        """Return 'ok' if the store answers a ping, otherwise 'error'."""
        try:
            return "ok" if await self.store.ping() else "error"
        except Exception as exc:
            self.logger.error("Cache health check failed", error=str(exc))
            return "error"

    def _count(self, metric_name: str, **labels) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, **labels)
        except Exception as exc:  # pragma: no cover - metrics failures never affect caching
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))
