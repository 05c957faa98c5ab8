from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_NOT_ALLOWED = "AUTH_NOT_ALLOWED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    GEOCODING_FAILED = "GEOCODING_FAILED"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"
    IMAGE_STORAGE_FAILED = "IMAGE_STORAGE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(HTTPException):
    def __init__(
        self,
        *,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        detail = {
            "message": message,
            "code": code.value,
            "details": details,
        }
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @property
    def message(self) -> str:
        return self.detail["message"]

    @property
    def code(self) -> str:
        return self.detail["code"]


def auth_invalid_token(details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.AUTH_INVALID_TOKEN,
        message="Invalid token",
        details=details,
        headers={"WWW-Authenticate": "Bearer"},
    )


def auth_not_allowed(message: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        code=ErrorCode.AUTH_NOT_ALLOWED,
        message=message,
        details=details,
    )


def resource_not_found(
    resource: str,
    resource_id: str | None = None,
    *,
    message: str | None = None,
) -> AppException:
    details = {"resource": resource}
    if resource_id:
        details["resource_id"] = resource_id
    return AppException(
        status_code=status.HTTP_404_NOT_FOUND,
        code=ErrorCode.RESOURCE_NOT_FOUND,
        message=message or f"{resource} not found",
        details=details,
    )


def invalid_input(message: str = "Invalid inputs passed, please check data", details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code=ErrorCode.VALIDATION_FAILED,
        message=message,
        details=details,
    )


def transaction_failed(message: str, details: Any | None = None) -> AppException:
    return AppException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=ErrorCode.TRANSACTION_FAILED,
        message=message,
        details=details,
    )
