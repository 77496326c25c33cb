"""
FHIR Facade service.
"""
