"""
Cache key builders for FHIR resources.

Keys are plain strings on the wire, but every key is produced by one of the
pure builders below so the key space stays in one place:

- single resource:   ``patient:abc``, ``observation:obs1``
- bounded listing:   ``patients:latest`` / ``patients:latest:10``
- filtered listing:  ``observation:patient:42``
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CacheKind(str, Enum):
    """Shape of the data stored under a key; drives the TTL policy."""

    RESOURCE = "resource"
    LISTING = "listing"
    BOUNDED_LISTING = "bounded_listing"
    FILTERED_LISTING = "filtered_listing"


@dataclass(frozen=True)
class CacheKey:
    """Typed cache key."""

    value: str
    kind: CacheKind

    def __str__(self) -> str:
        return self.value


PATIENT_REFERENCE_PREFIX = "Patient/"


def _type_prefix(resource_type: str) -> str:
    return resource_type.lower()


def _listing_prefix(resource_type: str) -> str:
    return f"{resource_type.lower()}s:latest"


def resource_key(resource_type: str, resource_id: str) -> CacheKey:
    """Key for a single resource read by id."""
    return CacheKey(f"{_type_prefix(resource_type)}:{resource_id}", CacheKind.RESOURCE)


def listing_key(resource_type: str, limit: Optional[int] = None) -> CacheKey:
    """Key for the unfiltered listing; ``limit`` is set only for a non-default bound."""
    if limit is None:
        return CacheKey(_listing_prefix(resource_type), CacheKind.LISTING)
    return CacheKey(f"{_listing_prefix(resource_type)}:{limit}", CacheKind.BOUNDED_LISTING)


def listing_family_pattern(resource_type: str) -> str:
    """Glob matching every bounded variant of the unfiltered listing."""
    return f"{_listing_prefix(resource_type)}:*"


def strip_patient_prefix(patient_ref: str) -> str:
    """Return the bare id of ``42`` or ``Patient/42``; the prefix matches in any case."""
    value = patient_ref.strip()
    if value[:len(PATIENT_REFERENCE_PREFIX)].casefold() == PATIENT_REFERENCE_PREFIX.casefold():
        value = value[len(PATIENT_REFERENCE_PREFIX):]
    return value


def normalize_patient_id(patient_ref: str) -> str:
    """Bare patient id, case-folded for use in cache keys."""
    return strip_patient_prefix(patient_ref).casefold()


def patient_filter_key(resource_type: str, patient_ref: str) -> CacheKey:
    """Key for a listing filtered by subject patient."""
    return CacheKey(
        f"{_type_prefix(resource_type)}:patient:{normalize_patient_id(patient_ref)}",
        CacheKind.FILTERED_LISTING,
    )
