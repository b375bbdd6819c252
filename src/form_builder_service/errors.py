"""
Domain errors raised by services and route handlers.

The API layer turns these into the `{ok: false, error, message, requestId}` envelope.
"""

from __future__ import annotations

from typing import Any, Optional


class ApiError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "", *, details: Optional[Any] = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details


class BadRequest(ApiError):
    status_code = 400
    code = "bad_request"


class Unauthorized(ApiError):
    status_code = 401
    code = "unauthorized"


class Forbidden(ApiError):
    status_code = 403
    code = "forbidden"


class NotFound(ApiError):
    status_code = 404
    code = "not_found"


class Conflict(ApiError):
    status_code = 409
    code = "conflict"


class UnprocessableEntity(ApiError):
    status_code = 422
    code = "validation_error"


class FormClosed(Forbidden):
    code = "form_closed"


class IntegrationError(Exception):
    """Raised by third-party forwarders; callers log it and carry on."""
