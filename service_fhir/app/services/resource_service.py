"""
Per-resource-type pass-throughs to the FHIR client.
"""

from typing import Any, Dict, Optional

from ..adapters.fhir_client import FhirClient


class ResourceService:
    """Binds a FHIR client to one resource type. No caching happens here."""

    resource_type: str = ""

    def __init__(self, fhir_client: FhirClient):
        self.fhir_client = fhir_client

    async def search(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.fhir_client.search(self.resource_type, params)

    async def read(self, resource_id: str) -> Dict[str, Any]:
        return await self.fhir_client.read(self.resource_type, resource_id)

    async def create(self, resource: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.fhir_client.create(self.resource_type, resource)

    async def update(self, resource: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.fhir_client.update(self.resource_type, resource)

    async def delete(self, resource_id: str) -> None:
        await self.fhir_client.delete(self.resource_type, resource_id)


class PatientService(ResourceService):
    resource_type = "Patient"


class ObservationService(ResourceService):
    resource_type = "Observation"
