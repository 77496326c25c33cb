"""
Cache-backed CRUD facades over the FHIR resource services.

Reads go cache -> origin -> cache populate. Writes go origin -> synchronous
invalidation of every key the written resource could have made stale, and
only then return to the caller.

There is no coordination between a read that is about to populate a key and
a concurrent write that invalidates it: the read may put back a value the
write just made stale, which then lives until its TTL. This window is
accepted.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from shared.errors import ValidationError
from shared.logging import get_logger
from ..caching.cache_manager import CacheManager
from ..caching.keys import (
    PATIENT_REFERENCE_PREFIX,
    CacheKey,
    listing_family_pattern,
    listing_key,
    normalize_patient_id,
    patient_filter_key,
    resource_key,
    strip_patient_prefix,
)
from ..services.resource_service import ResourceService
from .models import subject_reference

Resource = Dict[str, Any]


class ResourceFacade:
    """Read-through / write-invalidate orchestration for one resource type."""

    resource_type: str = ""

    def __init__(
        self,
        service: ResourceService,
        cache: CacheManager,
        *,
        default_limit: int,
        max_limit: int = 100,
    ):
        self.service = service
        self.cache = cache
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.logger = get_logger(f"fhir.facade.{self.resource_type.lower()}")

    @property
    def label(self) -> str:
        return self.resource_type.lower()

    # Reads

    async def get(self, resource_id: str) -> Resource:
        """Return one resource; ``NotFoundError`` from the origin propagates uncached."""
        key = resource_key(self.resource_type, resource_id)
        cached = await self.cache.get_json(key)
        if cached:
            self.logger.info(f"Cache hit for {self.label}", id=resource_id)
            return cached

        resource = await self.service.read(resource_id)
        await self.cache.set_json(self.resource_type, key, resource)
        return resource

    async def list(self, limit: Optional[int] = None) -> List[Resource]:
        """Return the latest resources, bounded by ``limit``."""
        bound = self._resolve_limit(limit)
        key = listing_key(self.resource_type, None if bound == self.default_limit else bound)
        return await self._cached_search(key, self._listing_params(bound))

    async def _cached_search(self, key: CacheKey, params: Dict[str, Any]) -> List[Resource]:
        cached = await self.cache.get_json(key)
        if isinstance(cached, list):
            self.logger.info(f"Cache hit for {self.label} list", key=key.value)
            return cached

        bundle = await self.service.search(params)
        resources = self._bundle_resources(bundle)
        await self.cache.set_json(self.resource_type, key, resources)
        return resources

    def _resolve_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.default_limit
        if limit < 1 or limit > self.max_limit:
            raise ValidationError(
                f"limit must be between 1 and {self.max_limit}",
                details={"limit": limit},
            )
        return limit

    def _listing_params(self, limit: int) -> Dict[str, Any]:
        return {"_count": limit}

    def _bundle_resources(self, bundle: Optional[Dict[str, Any]]) -> List[Resource]:
        """Extract resources of this facade's type; a missing entry list is empty."""
        entries = (bundle or {}).get("entry") or []
        return [
            entry["resource"]
            for entry in entries
            if isinstance(entry, dict)
            and isinstance(entry.get("resource"), dict)
            and entry["resource"].get("resourceType") == self.resource_type
        ]

    # Writes

    async def create(self, draft: Optional[BaseModel]) -> Resource:
        """Create from a validated request model and invalidate listings it could appear in."""
        if draft is None:
            raise ValidationError(f"{self.resource_type} data is required.")

        resource = draft.to_fhir()
        created = await self.service.create(resource)
        if not created or not created.get("id"):
            raise ValidationError(f"Failed to create {self.label}.")

        keys, patterns = self._listing_invalidation(resource)
        await self.cache.invalidate(self.resource_type, keys, patterns)

        self.logger.info(f"Created {self.label}", id=created["id"])
        return created

    async def update(self, resource_id: str, resource: Optional[Resource]) -> Resource:
        """Update on the origin, then invalidate the resource key and its listings."""
        if not isinstance(resource, dict):
            raise ValidationError(f"{self.resource_type} data is required.")

        declared_type = resource.get("resourceType")
        if declared_type is not None and declared_type != self.resource_type:
            raise ValidationError(
                f"Expected resourceType {self.resource_type}",
                details={"resourceType": declared_type},
            )

        payload = self._prepare_update(resource_id, dict(resource))
        updated = await self.service.update(payload)

        keys, patterns = self._listing_invalidation(payload)
        keys.insert(0, resource_key(self.resource_type, resource_id))
        await self.cache.invalidate(self.resource_type, keys, patterns)

        self.logger.info(f"Updated {self.label}", id=resource_id)
        # The origin is authoritative for server-managed fields such as meta.versionId.
        return updated if updated is not None else payload

    async def delete(self, resource_id: str) -> None:
        """Delete on the origin, then invalidate the resource key and unfiltered listings."""
        await self.service.delete(resource_id)

        keys, patterns = self._base_listing_invalidation()
        keys.insert(0, resource_key(self.resource_type, resource_id))
        await self.cache.invalidate(self.resource_type, keys, patterns)

        self.logger.info(f"Deleted {self.label}", id=resource_id)

    def _prepare_update(self, resource_id: str, payload: Resource) -> Resource:
        payload["resourceType"] = self.resource_type
        return payload

    def _base_listing_invalidation(self) -> Tuple[List[CacheKey], List[str]]:
        return [listing_key(self.resource_type)], [listing_family_pattern(self.resource_type)]

    def _listing_invalidation(self, resource: Resource) -> Tuple[List[CacheKey], List[str]]:
        """Listing keys a resource with this body could appear in."""
        return self._base_listing_invalidation()


class PatientFacade(ResourceFacade):
    """Patient facade. Listings are summary-only."""

    resource_type = "Patient"

    def _listing_params(self, limit: int) -> Dict[str, Any]:
        return {"_count": limit, "_summary": "true"}

    def _prepare_update(self, resource_id: str, payload: Resource) -> Resource:
        # The path id always wins over whatever id the payload carries.
        payload["id"] = resource_id
        return super()._prepare_update(resource_id, payload)


class ObservationFacade(ResourceFacade):
    """Observation facade, with listings filterable by subject patient."""

    resource_type = "Observation"

    async def list(self, limit: Optional[int] = None, patient_id: Optional[str] = None) -> List[Resource]:
        """Latest observations, or those of one patient.

        ``limit`` is validated in both cases. The patient-filtered listing
        always searches with the default bound so that one key per patient
        covers it.
        """
        bound = self._resolve_limit(limit)
        if patient_id is None or not patient_id.strip():
            return await super().list(bound)
        return await self.list_for_patient(patient_id)

    async def list_for_patient(self, patient_id: str) -> List[Resource]:
        """Observations whose subject is ``Patient/<patient_id>``."""
        key = patient_filter_key(self.resource_type, patient_id)
        params = {
            "subject": f"{PATIENT_REFERENCE_PREFIX}{strip_patient_prefix(patient_id)}",
            "_count": self.default_limit,
        }
        return await self._cached_search(key, params)

    def _prepare_update(self, resource_id: str, payload: Resource) -> Resource:
        if payload.get("id") != resource_id:
            raise ValidationError(
                "Mismatched Observation ID",
                details={"path_id": resource_id, "body_id": payload.get("id")},
            )
        return super()._prepare_update(resource_id, payload)

    def _listing_invalidation(self, resource: Resource) -> Tuple[List[CacheKey], List[str]]:
        keys, patterns = self._base_listing_invalidation()
        reference = subject_reference(resource)
        if reference and normalize_patient_id(reference):
            keys.append(patient_filter_key(self.resource_type, reference))
        return keys, patterns
