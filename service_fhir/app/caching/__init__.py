"""
Facade caching package.

Key builders, the TTL policy table, the Redis string store and the
best-effort JSON cache manager used by the resource facades. Writes
invalidate explicitly; entries otherwise live until their TTL.
"""

from .cache_manager import CacheManager
from .cache_store import RedisCacheStore
from .keys import (
    CacheKey,
    CacheKind,
    listing_family_pattern,
    listing_key,
    normalize_patient_id,
    strip_patient_prefix,
    patient_filter_key,
    resource_key,
)
from .policy import CachePolicy

__all__ = [
    "CacheKey",
    "CacheKind",
    "CacheManager",
    "CachePolicy",
    "RedisCacheStore",
    "listing_family_pattern",
    "listing_key",
    "normalize_patient_id",
    "strip_patient_prefix",
    "patient_filter_key",
    "resource_key",
]
