"""
Domain layer: request models, FHIR mapping and the cache-backed facades.
"""

from .facade import ObservationFacade, PatientFacade, ResourceFacade
from .models import (
    AuthResponse,
    CreateObservationRequest,
    CreatePatientRequest,
    LoginRequest,
)

__all__ = [
    "AuthResponse",
    "CreateObservationRequest",
    "CreatePatientRequest",
    "LoginRequest",
    "ObservationFacade",
    "PatientFacade",
    "ResourceFacade",
]
