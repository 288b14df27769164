"""Exceptions raised by the Keepsakes domain layer.

Each carries the HTTP status the web layer answers with, so route handlers
can let them propagate.
"""

from typing import Dict, Optional


class KeepsakeError(Exception):
    status = 500

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or {}

    def to_dict(self) -> dict:
        out = {"success": False, "error": self.message}
        if self.fields:
            out["fields"] = self.fields
        return out


class ValidationError(KeepsakeError):
    status = 400


class Unauthorized(KeepsakeError):
    status = 401


class Forbidden(KeepsakeError):
    status = 403


class NotFound(KeepsakeError):
    status = 404


class Conflict(KeepsakeError):
    status = 409


class PayloadTooLarge(KeepsakeError):
    status = 413


def from_pydantic(exc, message: str = "Invalid input") -> ValidationError:
    """Flatten a pydantic ValidationError into field -> message."""
    fields = {}
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
        fields.setdefault(loc, err.get("msg", "Invalid value"))
    return ValidationError(message, fields)
