"""
Request payload schemas.

Clients send camelCase keys (``patientId``); the schemas expose snake_case
attributes matching the model columns so a validated payload can be passed
straight to the record store.
"""
import datetime as dt
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .models import AppointmentStatus, AppointmentType, PrescriptionStatus, RecordType, Role
from .utils.errors import ValidationError


class RequestSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore'
    )


NonEmptyStr = Annotated[str, Field(min_length=1)]


def _reject_null(value):
    if value is None:
        raise ValueError('Field may not be null')
    return value


# ---- Identity ----

class IdentityClaims(RequestSchema):
    """Claims of an identity provider token, mapped onto user columns."""
    model_config = ConfigDict(alias_generator=None)

    id: str = Field(min_length=1, validation_alias='sub')
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: Optional[Role] = None


class CallbackRequest(RequestSchema):
    token: NonEmptyStr


class ProfileUpdate(RequestSchema):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    date_of_birth: Optional[dt.date] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    specialty: Optional[str] = None
    blood_type: Optional[str] = Field(default=None, max_length=10)
    allergies: Optional[str] = None


# ---- Appointments ----

class AppointmentCreate(RequestSchema):
    patient_id: NonEmptyStr
    doctor_id: NonEmptyStr
    appointment_date: dt.date
    appointment_time: dt.time
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    type: AppointmentType
    reason: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('status')
    @classmethod
    def starts_scheduled(cls, value):
        if value != AppointmentStatus.SCHEDULED:
            raise ValueError("New appointments must start as 'scheduled'")
        return value


class AppointmentUpdate(RequestSchema):
    patient_id: Optional[str] = Field(default=None, min_length=1)
    doctor_id: Optional[str] = Field(default=None, min_length=1)
    appointment_date: Optional[dt.date] = None
    appointment_time: Optional[dt.time] = None
    status: Optional[AppointmentStatus] = None
    type: Optional[AppointmentType] = None
    reason: Optional[str] = None
    notes: Optional[str] = None

    # Required columns may be omitted but not cleared
    @field_validator(
        'patient_id', 'doctor_id', 'appointment_date', 'appointment_time', 'status', 'type',
        mode='before'
    )
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)


# ---- Messages ----

class MessageCreate(RequestSchema):
    receiver_id: NonEmptyStr
    content: NonEmptyStr


# ---- Prescriptions ----

class PrescriptionCreate(RequestSchema):
    patient_id: NonEmptyStr
    medication_name: NonEmptyStr
    dosage: NonEmptyStr
    frequency: NonEmptyStr
    duration: NonEmptyStr
    instructions: Optional[str] = None
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE
    expires_at: Optional[dt.date] = None


# ---- Medical records ----

class MedicalRecordCreate(RequestSchema):
    patient_id: NonEmptyStr
    record_type: RecordType
    title: NonEmptyStr
    description: NonEmptyStr


# ---- Doctor / patient ----

class AssignPatient(RequestSchema):
    patient_id: NonEmptyStr


def format_errors(exc):
    """Collapse pydantic errors into {field: [messages]}."""
    errors = {}
    for error in exc.errors():
        field = '.'.join(str(part) for part in error['loc']) or 'body'
        errors.setdefault(field, []).append(error['msg'])
    return errors


def validate(schema, payload):
    """Validate a request payload, raising the API ValidationError on failure."""
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(errors=format_errors(e))
