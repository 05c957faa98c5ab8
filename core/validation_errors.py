from __future__ import annotations

from typing import Any

_REQUEST_PARTS = ("body", "query", "path", "header", "cookie")


def _field_error(error: dict[str, Any]) -> dict[str, str]:
    loc = error.get("loc") or ()
    if not isinstance(loc, (list, tuple)):
        loc = (loc,)
    parts = [str(part) for part in loc]
    location = parts.pop(0) if parts and parts[0] in _REQUEST_PARTS else "body"

    return {
        "path": ".".join(parts) or "(root)",
        "location": location,
        "message": str(error.get("msg", "Invalid value")),
        "errorType": str(error.get("type", "validation_error")),
    }


def _plural(noun: str, count: int) -> str:
    return noun if count == 1 else f"{noun}s"


def format_validation_error_details(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """Reduce FastAPI validation errors to ``summary``, ``missingFields`` and ``fieldErrors``.

    Raw ``input`` and ``ctx`` are left out: multipart requests put upload
    objects there and pydantic puts exception instances in ``ctx``.
    """
    field_errors = [_field_error(error) for error in errors]

    missing_fields: list[str] = []
    for field_error in field_errors:
        if field_error["errorType"] == "missing" and field_error["path"] not in missing_fields:
            missing_fields.append(field_error["path"])

    if missing_fields:
        summary = (
            f"Validation failed: missing required {_plural('field', len(missing_fields))}: "
            f"{', '.join(missing_fields)}."
        )
    else:
        summary = f"Validation failed for {len(field_errors)} {_plural('field', len(field_errors))}."

    return {"summary": summary, "missingFields": missing_fields, "fieldErrors": field_errors}
