# app/core/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Base for errors that map onto a response status."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(TrackerError):
    status_code = 400


class NotFoundError(TrackerError):
    status_code = 404


class PayloadTooLargeError(TrackerError):
    status_code = 413


class UnsupportedTypeError(TrackerError):
    status_code = 415


class StoreUnavailableError(TrackerError):
    status_code = 500


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TrackerError, tracker_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


__all__ = [
    "TrackerError",
    "ValidationError",
    "NotFoundError",
    "PayloadTooLargeError",
    "UnsupportedTypeError",
    "StoreUnavailableError",
    "register_exception_handlers",
]
