"""Error middleware — translates exceptions into JSON error responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auth_service.errors import AppError, ValidationError

logger = logging.getLogger(__name__)


def _error_body(err: AppError) -> dict:
    body = {"status": "error", "message": err.message}
    if err.details:
        body["details"] = jsonable_encoder(err.details)
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "Error: %s %s - %s, Status Code: %s",
        request.method,
        request.url.path,
        exc.message,
        exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await app_error_handler(request, ValidationError(details=exc.errors()))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled Error: %s %s - %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal Server Error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
