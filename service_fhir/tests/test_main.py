"""
Unit tests for the FHIR Facade HTTP service.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from service_fhir.app.adapters.fhir_client import FhirClient
from service_fhir.app.main import FhirFacadeService
from shared.errors import ExternalServiceError, NotFoundError
from shared.test_helpers import fhir_data_factory


class TestFhirFacadeService:
    """Test cases for FhirFacadeService."""

    @pytest.fixture
    def fhir_client(self):
        client = AsyncMock(spec=FhirClient)
        client.search.return_value = fhir_data_factory.bundle([])
        client.check_health.return_value = "ok"
        return client

    @pytest.fixture
    def service(self, fhir_client, cache_store):
        return FhirFacadeService(fhir_client=fhir_client, cache_store=cache_store)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    @pytest.fixture
    def auth_headers(self, service):
        token, _ = service.token_issuer.issue("FhirDev")
        return {"Authorization": f"Bearer {token}"}

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["service"] == "fhir"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["dependencies"] == {"redis": "ok", "fhir_server": "ok"}

    def test_health_degraded(self, client, fhir_client):
        fhir_client.check_health.return_value = "error"
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "error"

    def test_metrics_endpoint(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_login(self, client, service):
        response = client.post("/api/auth/login", json={"username": "FhirDev", "password": "@ppl3314"})

        assert response.status_code == 200
        body = response.json()
        assert service.authenticator.validate_token(body["token"])["sub"] == "FhirDev"
        assert body["expires"]

    def test_login_rejected(self, client):
        response = client.post("/api/auth/login", json={"username": "FhirDev", "password": "nope"})

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_ERROR"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize("method,path", [
        ("GET", "/api/patients"),
        ("GET", "/api/patients/abc"),
        ("DELETE", "/api/patients/abc"),
        ("GET", "/api/observations"),
        ("GET", "/api/observations/obs1"),
    ])
    def test_resource_routes_require_auth(self, client, fhir_client, method, path):
        response = client.request(method, path)

        assert response.status_code == 401
        fhir_client.read.assert_not_awaited()
        fhir_client.search.assert_not_awaited()
        fhir_client.delete.assert_not_awaited()

    def test_invalid_token(self, client):
        response = client.get("/api/patients", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_get_patient(self, client, fhir_client, auth_headers, cache_store):
        fhir_client.read.return_value = fhir_data_factory.patient("abc")

        response = client.get("/api/patients/abc", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["id"] == "abc"
        fhir_client.read.assert_awaited_once_with("Patient", "abc")
        assert "patient:abc" in cache_store.data

    def test_get_patient_not_found(self, client, fhir_client, auth_headers):
        fhir_client.read.side_effect = NotFoundError("Patient", "missing")

        response = client.get("/api/patients/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Patient with ID missing not found."

    def test_upstream_failure_is_bad_gateway(self, client, fhir_client, auth_headers):
        fhir_client.read.side_effect = ExternalServiceError("fhir_server", "Unexpected status 500")

        response = client.get("/api/observations/obs1", headers=auth_headers)

        assert response.status_code == 502

    def test_list_patients(self, client, fhir_client, auth_headers):
        fhir_client.search.return_value = fhir_data_factory.bundle([fhir_data_factory.patient("a")])

        response = client.get("/api/patients", headers=auth_headers)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == ["a"]
        fhir_client.search.assert_awaited_once_with("Patient", {"_count": 20, "_summary": "true"})

    def test_list_patients_with_limit(self, client, fhir_client, auth_headers, cache_store):
        response = client.get("/api/patients?limit=5", headers=auth_headers)

        assert response.status_code == 200
        assert cache_store.ttls["patients:latest:5"] == 300

    @pytest.mark.parametrize("limit", ["0", "101", "abc"])
    def test_list_patients_invalid_limit(self, client, fhir_client, auth_headers, limit):
        response = client.get(f"/api/patients?limit={limit}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        fhir_client.search.assert_not_awaited()

    def test_list_observations_for_patient(self, client, fhir_client, auth_headers, cache_store):
        response = client.get("/api/observations?patientId=Patient/42", headers=auth_headers)

        assert response.status_code == 200
        fhir_client.search.assert_awaited_once_with("Observation", {"subject": "Patient/42", "_count": 50})
        assert "observation:patient:42" in cache_store.data

    @pytest.mark.parametrize("limit", ["0", "101"])
    def test_list_observations_for_patient_invalid_limit(self, client, fhir_client, auth_headers, limit):
        response = client.get(f"/api/observations?patientId=42&limit={limit}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        fhir_client.search.assert_not_awaited()

    def test_create_patient(self, client, fhir_client, auth_headers):
        fhir_client.create.return_value = fhir_data_factory.patient("new")

        response = client.post(
            "/api/patients",
            json=fhir_data_factory.create_patient_payload(),
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["id"] == "new"
        assert response.headers["Location"].endswith("/api/patients/new")

    def test_create_patient_invalid_payload(self, client, fhir_client, auth_headers):
        payload = {**fhir_data_factory.create_patient_payload(), "birthDate": "12/04/1990"}

        response = client.post("/api/patients", json=payload, headers=auth_headers)

        assert response.status_code == 400
        fhir_client.create.assert_not_awaited()

    def test_create_patient_without_body(self, client, auth_headers):
        response = client.post("/api/patients", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Patient data is required."

    def test_create_patient_origin_rejects(self, client, fhir_client, auth_headers):
        fhir_client.create.return_value = None

        response = client.post(
            "/api/patients",
            json=fhir_data_factory.create_patient_payload(),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Failed to create patient."

    def test_create_observation(self, client, fhir_client, auth_headers, cache_store):
        cache_store.data["observation:patient:42"] = "[]"
        fhir_client.create.return_value = fhir_data_factory.observation("obs1")

        response = client.post(
            "/api/observations",
            json=fhir_data_factory.create_observation_payload("Patient/42"),
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.headers["Location"].endswith("/api/observations/obs1")
        assert "observation:patient:42" not in cache_store.data
        sent = fhir_client.create.await_args.args[1]
        assert sent["valueQuantity"]["value"] == 120

    def test_update_patient(self, client, fhir_client, auth_headers, cache_store):
        cache_store.data["patient:abc"] = "{}"
        fhir_client.update.return_value = fhir_data_factory.patient("abc")

        response = client.put("/api/patients/abc", json=fhir_data_factory.patient("zzz"), headers=auth_headers)

        assert response.status_code == 200
        assert fhir_client.update.await_args.args[1]["id"] == "abc"
        assert "patient:abc" not in cache_store.data

    def test_update_observation_mismatch(self, client, fhir_client, auth_headers):
        response = client.put(
            "/api/observations/obs1",
            json=fhir_data_factory.observation("obs2"),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Mismatched Observation ID"
        fhir_client.update.assert_not_awaited()

    def test_update_without_body(self, client, auth_headers):
        response = client.put("/api/observations/obs1", headers=auth_headers)
        assert response.status_code == 400

    def test_delete_observation(self, client, fhir_client, auth_headers, cache_store):
        cache_store.data["observation:obs1"] = "{}"

        response = client.delete("/api/observations/obs1", headers=auth_headers)

        assert response.status_code == 204
        fhir_client.delete.assert_awaited_once_with("Observation", "obs1")
        assert "observation:obs1" not in cache_store.data

    def test_delete_not_found(self, client, fhir_client, auth_headers):
        fhir_client.delete.side_effect = NotFoundError("Patient", "missing")

        response = client.delete("/api/patients/missing", headers=auth_headers)

        assert response.status_code == 404
