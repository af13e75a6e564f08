"""Global JSON error handling with stable error codes and request correlation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from spamscan.errors import AggregateDetectionError, ConfigurationError, ScopeClosedError
from spamscan.middleware.request_id import get_request_id

log = logging.getLogger(__name__)

# Map common HTTP statuses to stable machine-readable codes
_STATUS_TO_CODE = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
}


def _rid_from_request(request: Request) -> str:
    return get_request_id() or request.headers.get("X-Request-ID") or str(uuid4())


def _json_error(
    request: Request,
    *,
    detail: str,
    status: int,
    code: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    rid = _rid_from_request(request)
    body: Dict[str, Any] = {
        "detail": detail,
        "code": code or _STATUS_TO_CODE.get(status, "error"),
        "request_id": rid,
    }
    if extra:
        body.update(extra)
    resp = JSONResponse(status_code=status, content=body)
    resp.headers["X-Request-ID"] = rid
    return resp


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return _json_error(request, detail=detail, status=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _json_error(
            request,
            detail="Validation failed",
            status=422,
            code="validation_error",
            extra={"errors": exc.errors()},
        )

    @app.exception_handler(AggregateDetectionError)
    async def detection_exc_handler(request: Request, exc: AggregateDetectionError) -> JSONResponse:
        return _json_error(
            request,
            detail=str(exc),
            status=502,
            code="detection_failed",
            extra={"failed_fragments": [e.index for e in exc.errors]},
        )

    @app.exception_handler(ConfigurationError)
    async def config_exc_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        log.error("detector misconfigured: %s", exc)
        return _json_error(
            request,
            detail="Detector is misconfigured",
            status=500,
            code="configuration_error",
        )

    @app.exception_handler(ScopeClosedError)
    async def scope_closed_handler(request: Request, exc: ScopeClosedError) -> JSONResponse:
        log.warning("classification refused: %s", exc)
        return _json_error(
            request,
            detail="Detector is shut down",
            status=503,
            code="detector_closed",
        )


__all__ = ["register_error_handlers"]
