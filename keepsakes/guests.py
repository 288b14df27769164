"""Guest email sign-ups from the thank-you page."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import db
from .errors import Forbidden, from_pydantic

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class GuestSignup(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    name: Optional[str] = Field(None, max_length=100)


def add_guest_email(event: dict, data: dict) -> int:
    if not event["email_registration_enabled"]:
        raise Forbidden("Email registration is not enabled for this event.")
    try:
        signup = GuestSignup.model_validate(data or {})
    except PydanticValidationError as exc:
        raise from_pydantic(exc, "Please enter a valid email address.") from exc
    cur = db.execute(
        "INSERT INTO guests (event_id, email, name, has_consented, created_at) VALUES (?, ?, ?, 1, ?)",
        (event["id"], signup.email.lower(), signup.name or "", db.now_ms()),
    )
    return cur.lastrowid


def list_guests(event_id) -> List[dict]:
    rows = db.query_all(
        "SELECT id, email, name, has_consented, created_at FROM guests WHERE event_id = ? ORDER BY created_at, id",
        (event_id,),
    )
    return [dict(r, has_consented=bool(r["has_consented"])) for r in rows]
