"""
Application error types and their HTTP rendering.

Every error leaves the API as ``{"message": ...}`` with a status code.
Services raise ``AppError`` subclasses; route handlers never build error
responses by hand.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.core.logging import log_error

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error with a client-facing message. Defaults to 400."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    """The query matched zero records."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """A uniqueness constraint would be violated."""

    status_code = status.HTTP_400_BAD_REQUEST


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={"extra_data": {"status_code": exc.status_code, "error_type": type(exc).__name__}},
    )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed.", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(f"{request.method} {request.url.path}", exc, logger)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Something went wrong."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
