"""Global exception handlers

Every failure leaves the API in the standard envelope
{statusCode, data, message, success}, with a stack trace outside production.
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings
from ..utils.errors import AppError
from ..utils.responses import error_response

logger = logging.getLogger(__name__)


def _stack(exc: Exception):
    if settings.is_production:
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def _envelope(status_code: int, message: str, exc: Exception, data=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_response(status_code, message, _stack(exc), data)
    )


async def app_error_handler(request: Request, exc: AppError):
    return _envelope(exc.status_code, exc.message, exc, exc.details or None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Endpoint was not found" if exc.status_code == 404 else str(exc.detail)
    return _envelope(exc.status_code, message, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else error.get("msg"))
    return _envelope(400, "; ".join(messages) or "Invalid request data", exc)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _envelope(429, f"Rate limit exceeded: {exc.detail}", exc)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _envelope(500, "Internal Server Error", exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
