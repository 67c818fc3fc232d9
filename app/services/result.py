"""
Tagged results returned by the announcement and photo services.
Routers map an Err's kind to an HTTP status; services never raise HTTPException.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union

from app.utils.validation import FieldError

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNAUTHORIZED = "UNAUTHORIZED"
    UNSUPPORTED_MEDIA = "UNSUPPORTED_MEDIA_TYPE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    CONFLICT = "CONFLICT"
    STORAGE = "STORAGE_ERROR"
    PERSISTENCE = "PERSISTENCE_ERROR"


HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.UNSUPPORTED_MEDIA: 415,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE: 500,
    ErrorKind.PERSISTENCE: 500,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    fields: list[FieldError] = field(default_factory=list)
    ok: bool = field(default=False, init=False)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def as_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.kind.value, "message": self.message}
        if self.fields:
            body["fields"] = [f.as_dict() for f in self.fields]
        return {"error": body}


Result = Union[Ok[T], Err]
