"""
Problem-JSON error envelope.

Every error response carries ``type, title, status, detail, instance`` and,
when known, a machine ``code`` and structured ``errors``. Booking validation
failures put their reason (and the violated duration bound) under ``errors``.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)

STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
}


def _problem(
    request: Request,
    status: int,
    detail: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
) -> Dict[str, Any]:
    problem: Dict[str, Any] = {
        "type": "about:blank",
        "title": STATUS_TITLES.get(status, "Error"),
        "status": status,
        "detail": detail or "",
        "instance": request.url.path,
    }
    if code:
        problem["code"] = code
    if errors:
        problem["errors"] = jsonable_encoder(errors)
    return problem


def _split_http_detail(detail: Any) -> tuple[Optional[str], Optional[str], Optional[Any]]:
    """Pull message, code and errors out of an ``HTTPException.detail`` of any shape."""
    if isinstance(detail, dict):
        message = detail.get("message") or detail.get("detail")
        code = detail.get("code")
        return (
            message if isinstance(message, str) else None,
            code if isinstance(code, str) else None,
            detail.get("details") or detail.get("errors"),
        )
    if detail is None:
        return None, None, None
    return str(detail), None, None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        problem = _problem(request, exc.status_code, exc.message, exc.code, exc.details)
        return JSONResponse(problem, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail, code, errors = _split_http_detail(exc.detail)
        problem = _problem(request, exc.status_code, detail, code, errors)
        return JSONResponse(problem, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problem = _problem(
            request, 422, "Request validation failed", "validation_error", exc.errors()
        )
        return JSONResponse(problem, status_code=422)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        problem = _problem(request, 500, "Internal Server Error", "internal_server_error")
        return JSONResponse(problem, status_code=500)
