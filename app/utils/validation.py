"""
Validation building blocks for announcement requests.

Errors are collected (not fail-fast) so clients can show all field errors at once.
Field names follow the public JSON body (camelCase), except coordinate problems
which are reported under "location".
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

MISSING_VALUE = "MISSING_VALUE"
INVALID_FORMAT = "INVALID_FORMAT"
INVALID_FIELD = "INVALID_FIELD"

# [0-9] rather than \d: other Unicode digits are rejected
EMAIL_RE = re.compile(r"^(?=.{1,254}$)[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9\s\-().]{3,30}$", re.ASCII)
DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
MICROCHIP_RE = re.compile(r"^[0-9]{1,20}$")

MAX_AGE = 100

_MISSING_TYPES = {"missing", "missing_value"}


@dataclass(frozen=True)
class FieldError:
    field: str
    code: str
    message: str

    def as_dict(self) -> dict:
        return {"field": self.field, "code": self.code, "message": self.message}


@dataclass
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)
    value: Any = None

    @property
    def valid(self) -> bool:
        return not self.errors


def field_errors(errors: Iterable[dict]) -> list[FieldError]:
    """Map pydantic error dicts (ValidationError.errors()) onto FieldError codes."""
    out = []
    for error in errors:
        loc = error.get("loc") or ()
        name = ".".join(str(part) for part in loc) or "body"
        kind = error.get("type", "")
        if kind in _MISSING_TYPES:
            code = MISSING_VALUE
        elif kind == "extra_forbidden":
            code = INVALID_FIELD
        else:
            code = INVALID_FORMAT
        out.append(FieldError(name, code, error.get("msg", "")))
    return out


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def validate_location(lat, lng) -> list[FieldError]:
    """Both coordinates present and in range, or both absent. Errors are keyed 'location'."""
    if lat is None and lng is None:
        return []
    if lng is None:
        return [FieldError("location", MISSING_VALUE, "longitude is required when latitude is provided")]
    if lat is None:
        return [FieldError("location", MISSING_VALUE, "latitude is required when longitude is provided")]

    errors = []
    if not _is_number(lat):
        errors.append(FieldError("location", INVALID_FORMAT, "latitude must be a valid number"))
    elif not -90 <= lat <= 90:
        errors.append(FieldError("location", INVALID_FORMAT, "latitude must be between -90 and 90"))
    if not _is_number(lng):
        errors.append(FieldError("location", INVALID_FORMAT, "longitude must be a valid number"))
    elif not -180 <= lng <= 180:
        errors.append(FieldError("location", INVALID_FORMAT, "longitude must be between -180 and 180"))
    return errors
