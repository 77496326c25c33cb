"""
Resource services: thin adapters from the facades to the FHIR client.
"""

from .resource_service import ObservationService, PatientService, ResourceService

__all__ = [
    "ObservationService",
    "PatientService",
    "ResourceService",
]
