"""Request-id middleware, access logging and JSON error handlers.

Every response leaving the API is JSON, including faults nobody anticipated:
domain errors map to their own status codes, framework errors keep theirs, and
anything else becomes a 500 with `{"error": "Internal Server Error"}`.
"""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from queuewatch.core.config import settings
from queuewatch.core.errors import DashboardError
from queuewatch.core.logging import get_logger

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_INTERNAL_ERROR_MESSAGE = "Internal Server Error"

logger = get_logger(__name__)


class RequestIdMiddleware:
    """Attach a request id to scope state and response headers, and log each request."""

    def __init__(self, app: ASGIApp, *, header_name: str = REQUEST_ID_HEADER) -> None:
        self._app = app
        self._header_name = header_name
        self._header_key = header_name.lower().encode("latin-1")

    def _incoming_request_id(self, scope: Scope) -> str:
        for key, value in scope.get("headers", []):
            if key.lower() == self._header_key:
                candidate = value.decode("latin-1").strip()
                if candidate:
                    return candidate
        return uuid4().hex

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self._app(scope, receive, send)
            return

        request_id = self._incoming_request_id(scope)
        scope.setdefault("state", {})["request_id"] = request_id
        path = str(scope.get("path", ""))
        method = str(scope.get("method", ""))
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        started = perf_counter()

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = int(message["status"])
                headers = list(message.get("headers", []))
                if not any(key.lower() == self._header_key for key, _ in headers):
                    headers.append((self._header_key, request_id.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        try:
            await self._app(scope, receive, send_with_request_id)
        finally:
            _log_request(
                method=method,
                path=path,
                status_code=status_code,
                request_id=request_id,
                duration_ms=(perf_counter() - started) * 1000,
            )


def _log_request(
    *,
    method: str,
    path: str,
    status_code: int,
    request_id: str,
    duration_ms: float,
) -> None:
    if path in _HEALTH_PATHS and not settings.request_log_include_health:
        return
    extra = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "request_id": request_id,
        "duration_ms": round(duration_ms, 2),
    }
    logger.info("http.request.completed", extra=extra)
    slow_threshold_ms = settings.request_log_slow_ms
    if slow_threshold_ms and duration_ms >= slow_threshold_ms:
        logger.warning(
            "http.request.slow",
            extra={**extra, "slow_threshold_ms": slow_threshold_ms},
        )


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _json_safe(value: object) -> object:
    """Coerce validation error fragments into JSON-serializable values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


def _error_payload(*, error: str, request_id: str | None, **extra: object) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": error}
    payload.update(extra)
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _error_response(
    request: Request,
    *,
    status_code: int,
    error: str,
    **extra: object,
) -> JSONResponse:
    request_id = _get_request_id(request)
    # Responses from the outermost error middleware bypass RequestIdMiddleware.
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(error=error, request_id=request_id, **extra),
        headers=headers,
    )


async def _dashboard_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, DashboardError):
        msg = "Expected DashboardError"
        raise TypeError(msg)
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "http.request.dashboard_error",
            extra={"error_type": type(exc).__name__, "error": exc.message},
        )
    return _error_response(request, status_code=exc.status_code, error=exc.message)


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return _error_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error="Request validation failed",
        detail=_json_safe(exc.errors()),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error("http.response.validation_failed", extra={"errors": _json_safe(exc.errors())})
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=_INTERNAL_ERROR_MESSAGE,
    )


async def _http_exception_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return _error_response(request, status_code=exc.status_code, error=str(exc.detail))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "http.request.unhandled_error",
        extra={"error_type": type(exc).__name__},
        exc_info=exc,
    )
    return _error_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error=_INTERNAL_ERROR_MESSAGE,
    )


def install_error_handling(app: FastAPI) -> None:
    """Register the request-id middleware and all JSON error handlers on `app`."""
    app.add_exception_handler(DashboardError, _dashboard_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
    app.add_middleware(RequestIdMiddleware)
