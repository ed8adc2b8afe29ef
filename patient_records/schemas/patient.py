import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import phonenumbers
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Numeric fields treat these raw values as "not supplied"
BLANK_MEASUREMENTS = (None, "")

# (label, unit, minimum, maximum)
MEASUREMENT_RULES = {
    "height": ("Height", "cm", 50, 250),
    "weight": ("Weight", "kg", 20, 300),
}

TRIMMED_FIELDS = ("medical_record", "allergies", "chronic_diseases", "emergency_contact")


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def parse_measurement(value: Any, field: str) -> Optional[float]:
    label, unit, minimum, maximum = MEASUREMENT_RULES[field]
    if value in BLANK_MEASUREMENTS:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{label} must be a number")
    if number < minimum:
        raise ValueError(f"{label} must be at least {minimum} {unit}")
    if number > maximum:
        raise ValueError(f"{label} must be at most {maximum} {unit}")
    return number


def is_valid_phone(value: str) -> bool:
    """International-format phone number check."""
    try:
        parsed = phonenumbers.parse(value, None)
    except phonenumbers.NumberParseException:
        return False
    return phonenumbers.is_valid_number(parsed)


class PatientFields(CamelModel):
    """Clinical and contact fields shared by every patient payload."""
    medical_record: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    chronic_diseases: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blank_measurements(cls, data: Any) -> Any:
        # "" and null on height/weight mean the field was not supplied at all
        if isinstance(data, dict):
            return {
                key: value for key, value in data.items()
                if not (key in MEASUREMENT_RULES and value in BLANK_MEASUREMENTS)
            }
        return data

    @field_validator(*TRIMMED_FIELDS)
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value

    @field_validator("height", "weight", mode="before")
    @classmethod
    def check_measurement(cls, value: Any, info: ValidationInfo) -> Optional[float]:
        return parse_measurement(value, info.field_name)

    @field_validator("emergency_phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_phone(value):
            raise ValueError("Please provide a valid phone number")
        return value


class PatientCreate(PatientFields):
    user_id: str


class MyPatientCreate(PatientFields):
    """Self-service creation body; the owner is always the caller."""

    def for_user(self, user_id: str) -> PatientCreate:
        return PatientCreate(user_id=user_id, **self.model_dump(exclude_unset=True))


class PatientUpdate(PatientFields):
    """Partial patch: only the fields present in the request are applied."""

    def to_patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PatientSortField(str, Enum):
    ID = "id"
    USER_ID = "userId"
    MEDICAL_RECORD = "medicalRecord"
    BLOOD_TYPE = "bloodType"
    ALLERGIES = "allergies"
    CHRONIC_DISEASES = "chronicDiseases"
    EMERGENCY_CONTACT = "emergencyContact"
    EMERGENCY_PHONE = "emergencyPhone"
    HEIGHT = "height"
    WEIGHT = "weight"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class PatientQuery(CamelModel):
    search: Optional[str] = Field(None, description="Matches user name, email or phone")
    blood_type: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    sort_by: SortOrder = SortOrder.DESC
    sort_field: PatientSortField = PatientSortField.CREATED_AT

    @field_validator("search")
    @classmethod
    def strip_search(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# Responses

class PatientUserSummary(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    profile_image: Optional[str] = None


class PatientResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    medical_record: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[str] = None
    chronic_diseases: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[PatientUserSummary] = None


class PatientEnvelope(CamelModel):
    message: Optional[str] = None
    data: Optional[PatientResponse] = None


class MessageResponse(CamelModel):
    message: str


class PaginationMeta(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit)
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class PatientListResponse(CamelModel):
    data: List[PatientResponse]
    pagination: PaginationMeta


class BloodTypeCount(CamelModel):
    blood_type: str
    count: int


class PatientStatsResponse(CamelModel):
    total_patients: int
    patients_with_medical_records: int
    patients_without_medical_records: int
    blood_type_distribution: List[BloodTypeCount]
