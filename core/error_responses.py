"""JSON bodies for failed requests.

Successful routes return their payload as-is (``{"place": ...}``,
``{"places": [...]}``, ``{"message": ...}``). Failures always leave as
``{"message", "code", "details"}`` with the status code carrying the outcome,
plus ``requestId`` when the request-id middleware tagged the request.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from core.errors import ErrorCode

GENERIC_HTTP_ERROR_CODE = "HTTP_EXCEPTION"


def error_body(
    message: str,
    *,
    code: str = ErrorCode.INTERNAL_ERROR.value,
    details: Any | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message, "code": code, "details": details}
    if request_id:
        body["requestId"] = request_id
    return body


def error_response(
    *,
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    code: str = ErrorCode.INTERNAL_ERROR.value,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=jsonable_encoder(error_body(message, code=code, details=details, request_id=request_id)),
    )


def _unpack_detail(detail: Any) -> tuple[str, str, Any]:
    # AppException carries a dict; starlette/FastAPI raise plain strings.
    if isinstance(detail, dict) and isinstance(detail.get("message"), str) and detail["message"].strip():
        return detail["message"], detail.get("code") or GENERIC_HTTP_ERROR_CODE, detail.get("details")
    if isinstance(detail, str) and detail.strip():
        return detail, GENERIC_HTTP_ERROR_CODE, None
    return "Request failed", GENERIC_HTTP_ERROR_CODE, None


def request_id_from_request(request: Request | None) -> str | None:
    if request is None:
        return None
    return getattr(request.state, "request_id", None)


def http_exception_response(exc: HTTPException, request: Request | None = None) -> JSONResponse:
    message, code, details = _unpack_detail(exc.detail)
    return error_response(
        message=message,
        status_code=exc.status_code,
        code=code,
        details=details,
        headers=exc.headers,
        request_id=request_id_from_request(request),
    )


def error_responses(descriptions: dict[int, str]) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses=`` entries documenting a route's failure bodies."""
    return {
        status_code: {
            "description": description,
            "content": {"application/json": {"example": error_body(description)}},
        }
        for status_code, description in descriptions.items()
    }
