# app/logging/exception_handlers.py

import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.datatables.exceptions import DatatableError

logger = logging.getLogger(__name__)


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


async def datatable_exception_handler(request: Request, exc: DatatableError):
    """Answer datatable errors with their own status code"""
    if exc.status_code >= 500:
        logger.error("%s failed: %s", _describe(request), exc.message, exc_info=exc)
    else:
        logger.warning("%s rejected (%s): %s", _describe(request), exc.status_code, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.error("%s raised %s", _describe(request), type(exc).__name__, exc_info=exc)

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    logger.warning("%s failed validation: %s", _describe(request), exc.errors())

    # Convert errors to a safe format for JSON response
    def convert_error(error):
        if isinstance(error, dict):
            return {k: convert_error(v) for k, v in error.items()}
        elif isinstance(error, list):
            return [convert_error(item) for item in error]
        else:
            return str(error)

    return JSONResponse(
        status_code=422,
        content={"detail": convert_error(exc.errors())},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions and log 4xx/5xx errors"""
    if exc.status_code >= 500:
        logger.error("%s answered %s: %s", _describe(request), exc.status_code, exc.detail)
    elif exc.status_code >= 400:
        logger.warning("%s answered %s: %s", _describe(request), exc.status_code, exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )
