"""
FHIR Facade service: cache-backed Patient and Observation endpoints.
"""

from typing import Any, Dict, Optional

from fastapi import Body, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from .adapters.fhir_client import FhirClient
from .auth.jwt_auth import AuthContext, JWTAuthenticator, TokenIssuer
from .caching.cache_manager import CacheManager
from .caching.cache_store import RedisCacheStore
from .caching.policy import CachePolicy
from .domain.facade import ObservationFacade, PatientFacade
from .domain.models import AuthResponse, CreateObservationRequest, CreatePatientRequest, LoginRequest
from .services.resource_service import ObservationService, PatientService


class FhirFacadeService(BaseService):
    """FHIR Facade service implementation."""

    def __init__(
        self,
        *,
        fhir_client: Optional[FhirClient] = None,
        cache_store: Optional[RedisCacheStore] = None,
    ):
        super().__init__("fhir", 8000)

        self.fhir_client = fhir_client or FhirClient(
            self.config.fhir_server_url,
            timeout=self.config.fhir_timeout_seconds,
            metrics=self.metrics,
        )
        self.cache_store = cache_store or RedisCacheStore(self.config.redis_url)
        self.cache_manager = CacheManager(
            self.cache_store,
            CachePolicy.from_config(self.config),
            metrics=self.metrics,
        )

        self.patient_facade = PatientFacade(
            PatientService(self.fhir_client),
            self.cache_manager,
            default_limit=self.config.patient_list_limit,
            max_limit=self.config.max_list_limit,
        )
        self.observation_facade = ObservationFacade(
            ObservationService(self.fhir_client),
            self.cache_manager,
            default_limit=self.config.observation_list_limit,
            max_limit=self.config.max_list_limit,
        )

        self.authenticator = JWTAuthenticator(
            self.config.jwt_key,
            issuer=self.config.jwt_issuer,
            audience=self.config.jwt_audience,
        )
        self.token_issuer = TokenIssuer(
            self.config.jwt_key,
            self.config.jwt_issuer,
            self.config.jwt_audience,
            username=self.config.login_username,
            password=self.config.login_password,
            expiry_minutes=self.config.jwt_expiry_minutes,
        )

        self._setup_facade_routes()
        self._setup_auth_routes()
        self._setup_patient_routes()
        self._setup_observation_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.fhir_service = self

    async def on_shutdown(self) -> None:
        await self.fhir_client.close()
        await self.cache_store.close()
        self.logger.info("FHIR facade stopped")

    async def require_auth(self, request: Request) -> AuthContext:
        """FastAPI dependency: authenticate the bearer token on the request."""
        return await self.authenticator.authenticate(request)

    def _created(self, request: Request, route_name: str, resource: Dict[str, Any], **path_params) -> JSONResponse:
        location = str(request.url_for(route_name, **path_params))
        return JSONResponse(status_code=201, content=resource, headers={"Location": location})

    def _setup_facade_routes(self):
        """Set up service-level routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "fhir",
                "message": "FHIR Facade - Patient and Observation API",
                "version": "1.0.0",
                "fhir_server": self.config.fhir_server_url,
            }

    def _setup_auth_routes(self):
        """Set up the login route."""

        @self.app.post("/api/auth/login", response_model=AuthResponse)
        async def login(credentials: LoginRequest):
            """Issue a short-lived bearer token for valid credentials."""
            token, expires_at = self.token_issuer.login(credentials.username, credentials.password)
            return AuthResponse(token=token, expires=expires_at.isoformat())

    def _setup_patient_routes(self):
        """Set up Patient routes."""
        auth = Depends(self.require_auth)

        @self.app.get("/api/patients", dependencies=[auth])
        async def list_patients(limit: Optional[int] = Query(None)):
            """Latest patients, summary-only."""
            return await self.patient_facade.list(limit)

        @self.app.get("/api/patients/{patient_id}", name="get_patient", dependencies=[auth])
        async def get_patient(patient_id: str):
            return await self.patient_facade.get(patient_id)

        @self.app.post("/api/patients", status_code=201, dependencies=[auth])
        async def create_patient(request: Request, patient: Optional[CreatePatientRequest] = Body(None)):
            created = await self.patient_facade.create(patient)
            return self._created(request, "get_patient", created, patient_id=created["id"])

        @self.app.put("/api/patients/{patient_id}", dependencies=[auth])
        async def update_patient(patient_id: str, patient: Optional[Dict[str, Any]] = Body(None)):
            """Update a patient; the path id overrides any id in the body."""
            return await self.patient_facade.update(patient_id, patient)

        @self.app.delete("/api/patients/{patient_id}", status_code=204, dependencies=[auth])
        async def delete_patient(patient_id: str):
            await self.patient_facade.delete(patient_id)
            return Response(status_code=204)

    def _setup_observation_routes(self):
        """Set up Observation routes."""
        auth = Depends(self.require_auth)

        @self.app.get("/api/observations", dependencies=[auth])
        async def list_observations(
            limit: Optional[int] = Query(None),
            patient_id: Optional[str] = Query(None, alias="patientId"),
        ):
            """Latest observations, or the observations of one patient."""
            return await self.observation_facade.list(limit, patient_id=patient_id)

        @self.app.get("/api/observations/{observation_id}", name="get_observation", dependencies=[auth])
        async def get_observation(observation_id: str):
            return await self.observation_facade.get(observation_id)

        @self.app.post("/api/observations", status_code=201, dependencies=[auth])
        async def create_observation(request: Request, observation: Optional[CreateObservationRequest] = Body(None)):
            created = await self.observation_facade.create(observation)
            return self._created(request, "get_observation", created, observation_id=created["id"])

        @self.app.put("/api/observations/{observation_id}", dependencies=[auth])
        async def update_observation(observation_id: str, observation: Optional[Dict[str, Any]] = Body(None)):
            """Update an observation; the body id must match the path id."""
            return await self.observation_facade.update(observation_id, observation)

        @self.app.delete("/api/observations/{observation_id}", status_code=204, dependencies=[auth])
        async def delete_observation(observation_id: str):
            await self.observation_facade.delete(observation_id)
            return Response(status_code=204)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check facade dependencies."""
        return {
            "redis": await self.cache_manager.check_health(),
            "fhir_server": await self.fhir_client.check_health(),
        }


def create_app():
    """Create FastAPI application."""
    service = FhirFacadeService()
    return service.app


if __name__ == "__main__":
    service = FhirFacadeService()
    service.run()
