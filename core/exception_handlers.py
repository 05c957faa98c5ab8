from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from core.error_responses import error_response, http_exception_response, request_id_from_request
from core.errors import ErrorCode
from core.logger import get_logger
from core.validation_errors import format_validation_error_details

logger = get_logger(__name__)

INVALID_INPUT_MESSAGE = "Invalid inputs passed, please check data"


def install_exception_handlers(app: FastAPI, *, include_error_details: bool = False) -> None:
    """Register the handlers that turn every failure into an error body."""

    @app.exception_handler(HTTPException)
    async def custom_http_exception_handler(request: Request, exc: HTTPException):
        return http_exception_response(exc=exc, request=request)

    @app.exception_handler(RequestValidationError)
    async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
        details = format_validation_error_details(list(exc.errors()))
        logger.info("Rejected %s %s: %s", request.method, request.url.path, details["summary"])
        return error_response(
            message=INVALID_INPUT_MESSAGE,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=ErrorCode.VALIDATION_FAILED.value,
            details=details,
            request_id=request_id_from_request(request),
        )

    @app.exception_handler(Exception)
    async def custom_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(
            message="Internal Server Error",
            details=str(exc) if include_error_details else None,
            request_id=request_id_from_request(request),
        )
