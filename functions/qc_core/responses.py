"""
HTTP response helpers shared by the function packages.

Every response body is a JSON envelope carrying ``status`` and
``trace_id``. Engine errors map to status codes as follows:

    ValidationError           422 BLOCKED
    NotFoundError             404 NOT_FOUND
    QuotaExceededError        403 QUOTA_EXCEEDED
    PermissionDeniedError     403 FORBIDDEN

Request parsing errors (400 ERROR) and unexpected errors (500 ERROR) are
produced by the functions themselves.
"""

import json
from typing import Any, Dict

import azure.functions as func

from .exceptions import (
    NotFoundError,
    PermissionDeniedError,
    QualityError,
    QuotaExceededError,
    ValidationError,
)


def json_response(body: Dict[str, Any], status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, default=str),
        status_code=status_code,
        mimetype="application/json",
    )


def error_status(error: QualityError) -> tuple:
    """(http status code, envelope status) for an engine error."""
    if isinstance(error, NotFoundError):
        return 404, "NOT_FOUND"
    if isinstance(error, QuotaExceededError):
        return 403, "QUOTA_EXCEEDED"
    if isinstance(error, PermissionDeniedError):
        return 403, "FORBIDDEN"
    if isinstance(error, ValidationError):
        return 422, "BLOCKED"
    return 500, "ERROR"


def error_response(error: QualityError, trace_id: str) -> func.HttpResponse:
    status_code, status = error_status(error)
    return json_response(
        {
            "status": status,
            "message": error.message,
            "details": error.details,
            "trace_id": trace_id,
        },
        status_code=status_code,
    )
