"""
Failure kinds raised by the service layer.

Each error carries a machine-readable ``kind`` and a human message; the
application renders them as ``{"success": false, "error": kind, "message": ...}``.
"""

from typing import List, Optional


class AppError(Exception):
    kind = "server_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class BadRequest(AppError):
    """Invalid enum value, malformed payload or non-member assignee."""
    kind = "bad_request"
    status_code = 400


class Conflict(AppError):
    """Duplicate name, duplicate interaction, already-member, last leader, multi-team."""
    kind = "conflict"
    status_code = 400


class Full(AppError):
    """Team capacity exceeded."""
    kind = "full"
    status_code = 400


class Unauthorized(AppError):
    kind = "unauthorized"
    status_code = 401


class Forbidden(AppError):
    """Not a member, not a leader, or otherwise not allowed."""
    kind = "forbidden"
    status_code = 403


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
