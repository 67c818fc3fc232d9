from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from app.models.announcement import AnnouncementSex, AnnouncementSpecies, AnnouncementStatus
from app.utils.text import sanitize_text
from app.utils.validation import (
    DATE_RE,
    EMAIL_RE,
    INVALID_FORMAT,
    MAX_AGE,
    MICROCHIP_RE,
    PHONE_RE,
    FieldError,
    ValidationResult,
    field_errors,
    validate_location,
)

LOCATION_FIELDS = ("locationLatitude", "locationLongitude")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class AnnouncementCreate(CamelModel):
    """
    Creation body. Only camelCase keys are accepted and unknown keys are rejected.
    Free text is sanitized before the length limits apply.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=False, extra="forbid")

    species: AnnouncementSpecies
    sex: AnnouncementSex
    last_seen_date: date
    email: str
    phone: str
    status: AnnouncementStatus = AnnouncementStatus.ACTIVE
    location_latitude: float | None = Field(None, ge=-90, le=90, allow_inf_nan=False)
    location_longitude: float | None = Field(None, ge=-180, le=180, allow_inf_nan=False)
    pet_name: str | None = Field(None, max_length=100)
    breed: str | None = Field(None, max_length=100)
    age: int | None = Field(None, ge=1, le=MAX_AGE, strict=True)
    microchip_number: str | None = None
    description: str | None = Field(None, max_length=1000)
    reward: str | None = Field(None, max_length=100)

    @field_validator("species", "sex", "email", "phone", mode="before")
    @classmethod
    def _required(cls, value):
        value = _strip(value)
        if value is None or value == "":
            raise PydanticCustomError("missing_value", "cannot be empty")
        return value

    @field_validator("last_seen_date", mode="before")
    @classmethod
    def _last_seen_format(cls, value):
        value = _strip(value)
        if value is None or value == "":
            raise PydanticCustomError("missing_value", "cannot be empty")
        if isinstance(value, date):
            return value
        if not isinstance(value, str) or not DATE_RE.match(value):
            raise PydanticCustomError("date_format", "invalid date format (expected YYYY-MM-DD)")
        return value

    @field_validator("last_seen_date")
    @classmethod
    def _not_in_future(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today") or date.today()
        if value > today:
            raise PydanticCustomError("date_in_future", "lastSeenDate cannot be in the future")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value):
        value = _strip(value)
        return AnnouncementStatus.ACTIVE if value is None or value == "" else value

    @field_validator("microchip_number", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        value = _strip(value)
        return None if value == "" else value

    @field_validator("pet_name", "breed", "description", "reward", mode="before")
    @classmethod
    def _clean_text(cls, value, info: ValidationInfo):
        if not isinstance(value, str):
            return value
        return sanitize_text(value, multiline=info.field_name == "description") or None

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not EMAIL_RE.match(value):
            raise PydanticCustomError("email_format", "email format is invalid")
        return value

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, value: str) -> str:
        if not PHONE_RE.match(value) or not any(c in "0123456789" for c in value):
            raise PydanticCustomError("phone_format", "invalid phone format")
        return value

    @field_validator("microchip_number")
    @classmethod
    def _microchip_digits(cls, value: str | None) -> str | None:
        if value is not None and not MICROCHIP_RE.match(value):
            raise PydanticCustomError("microchip_format", "must contain only digits (at most 20)")
        return value

    @model_validator(mode="after")
    def _location_pair(self):
        errors = validate_location(self.location_latitude, self.location_longitude)
        if errors:
            raise PydanticCustomError("location", errors[0].message)
        return self


def _is_location_error(error: dict) -> bool:
    loc = error.get("loc") or ()
    return error.get("type") == "location" or (bool(loc) and loc[0] in LOCATION_FIELDS)


def validate_create_announcement(data, *, today: date | None = None) -> ValidationResult:
    """
    Validate a decoded JSON creation body into an AnnouncementCreate.
    `today` pins the reference date for the not-in-the-future check; defaults to date.today().
    """
    if not isinstance(data, dict):
        return ValidationResult([FieldError("body", INVALID_FORMAT, "request body must be a JSON object")])

    # Coordinates are checked on the raw pair so a partial pair is reported alongside field errors
    errors = validate_location(data.get("locationLatitude"), data.get("locationLongitude"))
    try:
        value = AnnouncementCreate.model_validate(data, context={"today": today or date.today()})
    except ValidationError as exc:
        errors.extend(field_errors(e for e in exc.errors() if not _is_location_error(e)))
        return ValidationResult(errors)
    if errors:
        return ValidationResult(errors)
    return ValidationResult([], value)


class AnnouncementCreateResponse(CamelModel):
    id: str
    management_password: str


class AnnouncementResponse(CamelModel):
    """Public view of an announcement. Never carries the management password or its hash."""
    id: str
    pet_name: str | None
    species: str
    breed: str | None
    sex: str
    age: int | None
    description: str | None
    microchip_number: str | None
    location_latitude: float | None
    location_longitude: float | None
    last_seen_date: date
    email: str
    phone: str
    photo_url: str | None
    status: str
    reward: str | None
    created_at: datetime
    updated_at: datetime
