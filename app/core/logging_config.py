"""
Logging setup and per-request access logging.
Every record carries the request id of the request that produced it ("-" outside requests).
Credentials are never logged: no headers, and upload bodies are described by type and size only.
"""
import contextvars
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)

logger = logging.getLogger("app.access")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once; safe to call again (handlers are not duplicated)."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(getattr(h, "_app_handler", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler._app_handler = True
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    root.addHandler(handler)


def describe_body(request: Request) -> str:
    content_type = request.headers.get("content-type", "")
    length = request.headers.get("content-length", "unknown")
    return f"{content_type.split(';')[0] or 'none'} ({length} bytes)"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = _request_id.set(request_id)
        start = time.perf_counter()
        try:
            logger.info("request received: %s %s body=%s", request.method, request.url.path, describe_body(request))
            try:
                response = await call_next(request)
            except Exception:
                elapsed = (time.perf_counter() - start) * 1000
                logger.exception("request failed: %s %s after %.1fms", request.method, request.url.path, elapsed)
                raise
            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                "request completed: %s %s status=%s responseTime=%.1fms",
                request.method, request.url.path, response.status_code, elapsed,
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _request_id.reset(token)
