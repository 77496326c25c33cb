"""
Test helper functions and factory methods for the FHIR Facade.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from jose import jwt

TEST_SIGNING_KEY = "local-development-signing-key-change-me"
TEST_ISSUER = "fhir-facade"
TEST_AUDIENCE = "fhir-facade-clients"


class FhirDataFactory:
    """Factory for FHIR resources and bundles."""

    @staticmethod
    def patient(patient_id: Optional[str] = "abc", family: str = "Doe", given: str = "Jane") -> Dict[str, Any]:
        resource: Dict[str, Any] = {
            "resourceType": "Patient",
            "name": [{"use": "official", "family": family, "given": [given]}],
            "gender": "female",
            "birthDate": "1990-04-12",
        }
        if patient_id is not None:
            resource["id"] = patient_id
        return resource

    @staticmethod
    def observation(
        observation_id: Optional[str] = "obs1",
        subject: Optional[str] = "Patient/42",
        value: float = 120,
    ) -> Dict[str, Any]:
        resource: Dict[str, Any] = {
            "resourceType": "Observation",
            "status": "final",
            "code": {
                "coding": [{"system": "http://loinc.org", "code": "8480-6", "display": "Systolic blood pressure"}],
                "text": "Systolic blood pressure",
            },
            "valueQuantity": {"value": value, "unit": "mmHg", "system": "http://unitsofmeasure.org", "code": "mm[Hg]"},
            "effectiveDateTime": "2024-05-01",
        }
        if observation_id is not None:
            resource["id"] = observation_id
        if subject is not None:
            resource["subject"] = {"reference": subject}
        return resource

    @staticmethod
    def bundle(resources: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "resourceType": "Bundle",
            "type": "searchset",
            "total": len(resources),
            "entry": [{"resource": resource} for resource in resources],
        }

    @staticmethod
    def create_patient_payload() -> Dict[str, Any]:
        return {
            "givenName": "Jane",
            "familyName": "Doe",
            "gender": "female",
            "birthDate": "1990-04-12",
        }

    @staticmethod
    def create_observation_payload(subject_id: str = "Patient/42") -> Dict[str, Any]:
        return {
            "subjectId": subject_id,
            "codeSystem": "http://loinc.org",
            "code": "8480-6",
            "codeDisplay": "Systolic blood pressure",
            "value": "120",
            "unit": "mmHg",
            "unitSystem": "http://unitsofmeasure.org",
            "unitCode": "mm[Hg]",
            "effectiveDate": "2024-05-01",
        }


class MockTokenGenerator:
    """Generate JWTs signed like the login endpoint's tokens."""

    def __init__(self, issuer: str = TEST_ISSUER, audience: str = TEST_AUDIENCE, secret: str = TEST_SIGNING_KEY):
        self.issuer = issuer
        self.audience = audience
        self.secret = secret

    def generate_access_token(self, subject: str = "FhirDev", expires_in: int = 3600, **extra_claims: Any) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": subject,
            "name": subject,
            "role": "Admin",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        }
        payload.update(extra_claims)
        return jwt.encode(payload, self.secret, algorithm="HS256")

    def auth_headers(self, **kwargs: Any) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.generate_access_token(**kwargs)}"}


fhir_data_factory = FhirDataFactory()
mock_token_generator = MockTokenGenerator()
