"""Request-id propagation and structured error responses for the API."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from release_planner.core.config import settings
from release_planner.core.errors import PlannerError
from release_planner.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})


class RequestIdMiddleware:
    """Assign a request id, echo it on responses, and log request timing."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = Headers(scope=scope).get(REQUEST_ID_HEADER, "").strip()
        request_id = incoming or uuid4().hex
        scope.setdefault("state", {})["request_id"] = request_id
        started = perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                if REQUEST_ID_HEADER not in headers:
                    headers.append(REQUEST_ID_HEADER, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            _log_request(
                scope,
                request_id=request_id,
                status_code=status_code,
                duration_ms=(perf_counter() - started) * 1000,
            )


def _log_request(
    scope: Scope,
    *,
    request_id: str,
    status_code: int,
    duration_ms: float,
) -> None:
    path = str(scope.get("path", ""))
    if path in _HEALTH_PATHS and not settings.request_log_include_health:
        return
    method = str(scope.get("method", ""))
    if duration_ms >= settings.request_log_slow_ms:
        logger.warning(
            "http.request.slow method=%s path=%s status=%s duration_ms=%.1f request_id=%s",
            method,
            path,
            status_code,
            duration_ms,
            request_id,
        )
        return
    logger.info(
        "http.request method=%s path=%s status=%s duration_ms=%.1f request_id=%s",
        method,
        path,
        status_code,
        duration_ms,
        request_id,
    )


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    request_id = incoming or uuid4().hex
    request.state.request_id = request_id
    return request_id


def _error_payload(
    *,
    detail: Any,
    request_id: str,
    code: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail, "request_id": request_id}
    if code is not None:
        payload["code"] = code
    return payload


def _json_error(
    request: Request,
    *,
    status_code: int,
    detail: Any,
    code: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail=detail, request_id=request_id, code=code),
        headers=response_headers,
    )


def _sanitize_validation_errors(errors: Any) -> Any:
    sanitized: list[Any] = []
    for error in errors:
        if isinstance(error, dict):
            item = dict(error)
            raw_input = item.get("input")
            if isinstance(raw_input, (bytes, bytearray)):
                item["input"] = bytes(raw_input).decode("utf-8", errors="replace")
            item.pop("ctx", None)
            sanitized.append(item)
        else:
            sanitized.append(error)
    return jsonable_encoder(sanitized)


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return _json_error(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        detail=_sanitize_validation_errors(errors),
        code="validation_error",
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return await _unhandled_exception_handler(request, exc)
    return _json_error(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=getattr(exc, "headers", None),
    )


async def _planner_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, PlannerError):
        return await _unhandled_exception_handler(request, exc)
    logger.info(
        "planner.error code=%s status=%s path=%s message=%s",
        exc.code,
        exc.status_code,
        request.url.path,
        exc.message,
    )
    detail: Any = exc.message
    if exc.field is not None:
        detail = {"message": exc.message, "field": exc.field}
    return _json_error(
        request,
        status_code=exc.status_code,
        detail=detail,
        code=exc.code,
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        "http.response_validation_failed path=%s",
        request.url.path,
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.unhandled_exception path=%s",
        request.url.path,
        exc_info=exc,
    )
    return _json_error(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and structured exception handlers."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(PlannerError, _planner_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
