"""Global exception handlers producing the ``{status: "error", message}`` envelope.

- ScrutinioError -> its own status code and message
- RequestValidationError -> 400 with the first field problem
- Exception (catch-all) -> 500 with the exception text
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from scrutinio.exceptions import ScrutinioError

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ScrutinioError)
    async def scrutinio_error_handler(request: Request, exc: ScrutinioError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.info(f"Validation error on {request.url.path}: {errors}")
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        return error_response(message, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return error_response(str(exc) or type(exc).__name__, status.HTTP_500_INTERNAL_SERVER_ERROR)
