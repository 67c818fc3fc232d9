"""Mapping of service Err values onto HTTP errors. The app-level handler renders the detail as {"error": detail}."""
from fastapi import HTTPException

from app.services.result import Err, ErrorKind


def http_error(err: Err) -> HTTPException:
    headers = None
    if err.kind is ErrorKind.UNAUTHENTICATED:
        headers = {"WWW-Authenticate": "Basic"}
    return HTTPException(status_code=err.status_code, detail=err.as_dict()["error"], headers=headers)
