"""
Unified error envelope.

Every error response body has the shape ``{"code", "message", "details"}``.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException, RepositoryException

logger = logging.getLogger(__name__)


def _code_from_status(status_code: int) -> str:
    mapping = {
        400: "VALIDATION_ERROR",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
    }
    return mapping.get(status_code, "ERROR")


def _envelope(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    return {
        "code": code,
        "message": message,
        "details": jsonable_encoder(details) if details is not None else {},
    }


def _parse_detail(status_code: int, detail: Any) -> Dict[str, Any]:
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        return _envelope(
            code or _code_from_status(status_code),
            message if isinstance(message, str) else "",
            detail.get("details"),
        )
    if isinstance(detail, str):
        return _envelope(_code_from_status(status_code), detail)
    return _envelope(_code_from_status(status_code), "" if detail is None else str(detail))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        return JSONResponse(jsonable_encoder(exc.to_dict()), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            _parse_detail(exc.status_code, exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            _envelope("VALIDATION_ERROR", "Request validation failed", {"errors": exc.errors()}),
            status_code=400,
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"Repository failure on {request.url.path}: {exc}")
        return JSONResponse(
            _envelope("INTERNAL_ERROR", "Internal Server Error"), status_code=500
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(
            _envelope("INTERNAL_ERROR", "Internal Server Error"), status_code=500
        )
