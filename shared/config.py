"""
Shared configuration management for the FHIR Facade.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="FHIR_FACADE_",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"
    log_format: str = "json"

    # External services
    redis_url: str = "redis://localhost:6379/0"
    fhir_server_url: str = "https://server.fire.ly"
    fhir_timeout_seconds: float = 30.0

    # Security
    jwt_key: str = "local-development-signing-key-change-me"
    jwt_issuer: str = "fhir-facade"
    jwt_audience: str = "fhir-facade-clients"
    jwt_expiry_minutes: int = 60
    login_username: str = "FhirDev"
    login_password: str = "@ppl3314"

    # CORS
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:4200"])

    # Listing bounds
    patient_list_limit: int = 20
    observation_list_limit: int = 50
    max_list_limit: int = 100

    # Cache TTLs (seconds)
    cache_resource_ttl: int = 600
    cache_listing_ttl: int = 600
    cache_bounded_listing_ttl: int = 300
    cache_filtered_listing_ttl: int = 300


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
