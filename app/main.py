from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.config import get_settings
from app.core.logging_config import RequestLoggingMiddleware, configure_logging
from app.routers import admin, announcements, images
from app.services.result import Err, ErrorKind
from app.utils.validation import field_errors

# Codes for HTTPExceptions raised with a plain string detail (auth dependencies, unknown routes)
ERROR_CODES_BY_STATUS = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Every error body is {"error": {"code", "message", "fields"?}}."""
    if isinstance(exc.detail, dict):
        error = exc.detail
    else:
        error = {"code": ERROR_CODES_BY_STATUS.get(exc.status_code, "HTTP_ERROR"), "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content={"error": error}, headers=exc.headers)


async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client validation errors like any other: 400 with itemized fields."""
    errors = []
    for error in exc.errors():
        loc = tuple(part for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        errors.append({**error, "loc": loc})
    err = Err(ErrorKind.VALIDATION, "Validation failed.", field_errors(errors))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=err.as_dict())


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Pet Announcements API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(announcements.router)
    app.include_router(admin.router)
    app.include_router(images.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
