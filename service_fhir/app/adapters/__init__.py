"""
Adapters package for the FHIR Facade.

Contains the HTTP client wrapper for the remote FHIR server. Adapters
encapsulate base URLs, request shapes and the mapping of HTTP failures to
shared errors. Keep adapters thin and side-effect free outside of explicit
calls.
"""

from .fhir_client import FhirClient

__all__ = [
    "FhirClient",
]
