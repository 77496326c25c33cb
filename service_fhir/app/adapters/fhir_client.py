"""
FHIR REST client for the facade.
"""

import time
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from shared.errors import ExternalServiceError, NotFoundError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


FHIR_JSON = "application/fhir+json"
NOT_FOUND_STATUSES = (404, 410)


class FhirClient:
    """Async client for the read/search/create/update/delete interactions of a FHIR server.

    A 404 or 410 from the server is raised as ``NotFoundError``; any other
    failure, including transport errors, as ``ExternalServiceError``. No
    retries are attempted.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.metrics = metrics
        self.logger = get_logger("fhir.client")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": FHIR_JSON},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def read(self, resource_type: str, resource_id: str) -> Dict[str, Any]:
        """GET ``<type>/<id>``."""
        response = await self._request("read", resource_type, "GET", f"/{resource_type}/{resource_id}", resource_id=resource_id)
        return response.json()

    async def search(self, resource_type: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET ``<type>?params``; returns the search Bundle."""
        response = await self._request("search", resource_type, "GET", f"/{resource_type}", params=params or {})
        if not response.content:
            return {"resourceType": "Bundle", "type": "searchset"}
        return response.json()

    async def create(self, resource_type: str, resource: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """POST ``<type>``; returns the created resource, or None if the server sent no body."""
        response = await self._request(
            "create",
            resource_type,
            "POST",
            f"/{resource_type}",
            json=resource,
            headers={"Content-Type": FHIR_JSON, "Prefer": "return=representation"},
        )
        return response.json() if response.content else None

    async def update(self, resource_type: str, resource: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """PUT ``<type>/<id>`` using the id carried by the resource."""
        resource_id = resource.get("id")
        response = await self._request(
            "update",
            resource_type,
            "PUT",
            f"/{resource_type}/{resource_id}",
            resource_id=resource_id,
            json=resource,
            headers={"Content-Type": FHIR_JSON, "Prefer": "return=representation"},
        )
        return response.json() if response.content else None

    async def delete(self, resource_type: str, resource_id: str) -> None:
        """DELETE ``<type>/<id>``."""
        await self._request("delete", resource_type, "DELETE", f"/{resource_type}/{resource_id}", resource_id=resource_id)

    async def check_health(self) -> str:
        """Return 'ok' if the server answers its capability statement, otherwise 'error'."""
        try:
            response = await self._client.get("/metadata")
            return "ok" if response.status_code == 200 else "error"
        except httpx.HTTPError as exc:
            self.logger.error("FHIR server health check failed", error=str(exc))
            return "error"

    async def _request(
        self,
        operation: str,
        resource_type: str,
        method: str,
        path: str,
        *,
        resource_id: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request and translate failures into shared errors."""
        start = time.perf_counter()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            self._record(resource_type, operation, "error", start)
            self.logger.error(
                "FHIR request failed",
                operation=operation,
                resource_type=resource_type,
                path=path,
                error=str(exc),
            )
            raise ExternalServiceError(
                service="fhir_server",
                message=str(exc) or exc.__class__.__name__,
                details={"operation": operation, "resource_type": resource_type},
            ) from exc

        if response.status_code in NOT_FOUND_STATUSES and resource_id is not None:
            self._record(resource_type, operation, "not_found", start)
            self.logger.info("FHIR resource not found", operation=operation, resource_type=resource_type, id=resource_id)
            raise NotFoundError(resource_type, resource_id)

        if response.status_code >= 400:
            self._record(resource_type, operation, "error", start)
            self.logger.error(
                "FHIR request returned error status",
                operation=operation,
                resource_type=resource_type,
                path=path,
                status_code=response.status_code,
                response=response.text,
            )
            raise ExternalServiceError(
                service="fhir_server",
                message=f"Unexpected status {response.status_code}",
                details={
                    "operation": operation,
                    "resource_type": resource_type,
                    "status_code": response.status_code,
                    "body": self._safe_body(response),
                },
            )

        self._record(resource_type, operation, "success", start)
        self.logger.debug("FHIR request succeeded", operation=operation, resource_type=resource_type, path=path)
        return response

    def _record(self, resource_type: str, operation: str, outcome: str, start: float) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter(
            "fhir_requests_total",
            resource_type=resource_type,
            operation=operation,
            outcome=outcome,
        )
        self.metrics.observe_histogram(
            "fhir_request_duration_seconds",
            time.perf_counter() - start,
            resource_type=resource_type,
            operation=operation,
        )

    @staticmethod
    def _safe_body(response: httpx.Response) -> Any:
        """Return the JSON body (usually an OperationOutcome) or raw text."""
        try:
            return response.json()
        except ValueError:
            return response.text
