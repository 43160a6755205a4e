"""
Global error handlers.

Every failure leaves the API as ``{"error": <message>, "details": <trace>}``;
``details`` carries the traceback outside production and is null in production.
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas.common import ErrorResponse
from app.utils.validation import describe_validation_errors
from core.config import Settings
from core.errors import AppError, ServiceUnavailableError

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error occurred"
DATABASE_BUSY = "Database is busy, try again later"


def install_error_handlers(app: FastAPI, settings: Settings) -> None:
    def render(status_code: int, message: str, exc: Optional[BaseException] = None) -> JSONResponse:
        details = None
        if exc is not None and not settings.is_production:
            details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=status_code, content=ErrorResponse(error=message, details=details).model_dump())

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return render(exc.status_code, exc.message, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return render(status.HTTP_400_BAD_REQUEST, describe_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        response = render(exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(PoolTimeoutError)
    async def pool_timeout_handler(request: Request, exc: PoolTimeoutError):
        logger.warning(f"No database connection available for {request.method} {request.url.path}")
        error = ServiceUnavailableError(DATABASE_BUSY)
        return render(error.status_code, error.message, exc)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return render(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR, exc)
