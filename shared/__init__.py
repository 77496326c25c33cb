"""
Shared utilities for the FHIR Facade.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI scaffolding (middleware, health, metrics, handlers)

Do not import from service_* packages into shared/.
"""
