"""Render every failure with the ``{"success": false, ...}`` envelope."""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.core.exceptions import ValorSalesError
from backend.app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def _phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValorSalesError)
    async def domain_error_handler(request: Request, exc: ValorSalesError) -> JSONResponse:
        body = ErrorResponse(error=exc.error, message=exc.message)
        return JSONResponse(content=body.model_dump(), status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        body = ErrorResponse(error=_phrase(exc.status_code), message=str(exc.detail))
        return JSONResponse(
            content=body.model_dump(),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        content = ErrorResponse(
            error="Validation error", message="Request validation failed"
        ).model_dump()
        content["details"] = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
        return JSONResponse(
            content=content, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = ErrorResponse(
            error="Internal server error", message="An unexpected error occurred"
        )
        return JSONResponse(
            content=body.model_dump(),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
