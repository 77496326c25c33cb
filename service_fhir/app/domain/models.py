"""
Request models for the FHIR Facade and their mapping onto FHIR JSON.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class AdministrativeGender(str, Enum):
    """FHIR administrative gender codes."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AdministrativeGender":
        """Case-insensitive parse; anything unrecognised maps to UNKNOWN."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class CreatePatientRequest(BaseModel):
    """Request model for creating a Patient."""

    model_config = ConfigDict(populate_by_name=True)

    given_name: str = Field(..., alias="givenName", min_length=1, description="Given name")
    family_name: str = Field(..., alias="familyName", min_length=1, description="Family name")
    gender: str = Field(..., pattern=r"^(male|female|other|unknown)$", description="Administrative gender")
    birth_date: str = Field(..., alias="birthDate", pattern=DATE_PATTERN, description="Birth date, YYYY-MM-DD")

    def to_fhir(self) -> Dict[str, Any]:
        """Translate into a FHIR Patient resource."""
        name: Dict[str, Any] = {"use": "official", "family": self.family_name}
        if self.given_name.strip():
            name["given"] = [self.given_name]

        return {
            "resourceType": "Patient",
            "name": [name],
            "gender": AdministrativeGender.parse(self.gender).value,
            "birthDate": self.birth_date,
        }


class CreateObservationRequest(BaseModel):
    """Request model for creating an Observation."""

    model_config = ConfigDict(populate_by_name=True)

    subject_id: str = Field(..., alias="subjectId", min_length=1, description="Subject reference, e.g. Patient/123")
    code_system: str = Field(..., alias="codeSystem", min_length=1, description="Code system URI")
    code: str = Field(..., min_length=1, description="Code value")
    code_display: str = Field(..., alias="codeDisplay", min_length=1, description="Code display text")
    value: str = Field(..., min_length=1, description="Observed value")
    unit: str = Field(..., min_length=1, description="Unit of the value")
    unit_system: str = Field("http://unitsofmeasure.org", alias="unitSystem", min_length=1)
    unit_code: str = Field(..., alias="unitCode", min_length=1, description="Machine-readable unit code")
    effective_date: str = Field(..., alias="effectiveDate", pattern=DATE_PATTERN, description="Effective date, YYYY-MM-DD")

    def to_fhir(self) -> Dict[str, Any]:
        """Translate into a FHIR Observation resource."""
        quantity: Dict[str, Any] = {
            "unit": self.unit,
            "system": self.unit_system,
            "code": self.unit_code,
        }
        numeric_value = _parse_decimal(self.value)
        if numeric_value is not None:
            quantity["value"] = numeric_value

        return {
            "resourceType": "Observation",
            "status": "final",
            "subject": {"reference": self.subject_id},
            "code": {
                "coding": [
                    {
                        "system": self.code_system,
                        "code": self.code,
                        "display": self.code_display,
                    }
                ],
                "text": self.code_display,
            },
            "valueQuantity": quantity,
            "effectiveDateTime": self.effective_date,
        }


def _parse_decimal(value: str) -> Optional[float]:
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return int(parsed) if parsed == parsed.to_integral_value() else float(parsed)


def subject_reference(resource: Dict[str, Any]) -> Optional[str]:
    """Return ``subject.reference`` of a resource, if present and non-empty."""
    subject = resource.get("subject")
    if isinstance(subject, dict):
        reference = subject.get("reference")
        if isinstance(reference, str) and reference.strip():
            return reference
    return None


class LoginRequest(BaseModel):
    """Request model for the login endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field("", description="Username")
    password: str = Field("", description="Password")


class AuthResponse(BaseModel):
    """Token issued on successful login."""

    token: str
    expires: str
