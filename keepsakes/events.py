"""The event: wall display settings plus the pause and remote-control state."""

import json
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import db
from .errors import Conflict, NotFound, ValidationError, from_pydantic

SLUG_PATTERN = r"^[a-z0-9-]+$"
KEEPSAKE_TYPES = ("photo", "video", "text", "gallery")

BOOL_COLUMNS = (
    "consent_required", "paused", "allow_downloads", "show_captions",
    "show_author_names", "enable_fullscreen", "email_registration_enabled",
)
NULLABLE = {"subtitle", "instructions", "hero_image_url", "hero_color"}


class KeepsakeTypes(BaseModel):
    photo: bool = True
    video: bool = True
    text: bool = True
    gallery: bool = True


class EventSettings(BaseModel):
    """Editable event fields. Every field is optional so it doubles as a patch."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=1, max_length=50, pattern=SLUG_PATTERN)
    subtitle: Optional[str] = Field(None, max_length=150)
    instructions: Optional[str] = Field(None, max_length=500)
    hero_image_url: Optional[str] = Field(None, max_length=2000)
    hero_color: Optional[str] = Field(None, pattern=r"^(#[0-9a-fA-F]{6})?$")
    consent_required: Optional[bool] = None
    allow_downloads: Optional[bool] = None
    show_captions: Optional[bool] = None
    show_author_names: Optional[bool] = None
    enable_fullscreen: Optional[bool] = None
    email_registration_enabled: Optional[bool] = None
    autoplay_delay: Optional[int] = Field(None, ge=1000, le=30000)
    transition_duration: Optional[int] = Field(None, ge=100, le=5000)
    gallery_item_delay: Optional[int] = Field(None, ge=1000, le=10000)
    gallery_transition_duration: Optional[int] = Field(None, ge=100, le=1000)
    mobile_grid_columns: Optional[int] = Field(None, ge=1, le=4)
    gallery_size_limit: Optional[int] = Field(None, ge=1, le=20)
    enabled_keepsake_types: Optional[KeepsakeTypes] = None


def generate_slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower())
    return slug.strip("-")


def validate_settings(data: dict) -> dict:
    """Validate a (partial) settings mapping and return only the fields given."""
    try:
        settings = EventSettings.model_validate(data or {})
    except PydanticValidationError as exc:
        raise from_pydantic(exc, "Invalid event settings") from exc
    out = settings.model_dump(exclude_unset=True)
    if settings.enabled_keepsake_types is not None:
        out["enabled_keepsake_types"] = settings.enabled_keepsake_types.model_dump()
    nulls = {k: "Field may not be empty" for k, v in out.items() if v is None and k not in NULLABLE}
    if nulls:
        raise ValidationError("Invalid event settings", nulls)
    return out


def _to_columns(values: dict) -> dict:
    cols = dict(values)
    if "enabled_keepsake_types" in cols:
        cols["enabled_keepsake_types"] = json.dumps(cols["enabled_keepsake_types"], sort_keys=True)
    for key in BOOL_COLUMNS:
        if key in cols:
            cols[key] = 1 if cols[key] else 0
    return cols


def row_to_event(row) -> Optional[dict]:
    if row is None:
        return None
    event = dict(row)
    for key in BOOL_COLUMNS:
        event[key] = bool(event[key])
    try:
        types = json.loads(event.get("enabled_keepsake_types") or "{}")
    except ValueError:
        types = {}
    event["enabled_keepsake_types"] = {t: bool(types.get(t, True)) for t in KEEPSAKE_TYPES}
    return event


def get_event_by_id(event_id) -> Optional[dict]:
    return row_to_event(db.query_one("SELECT * FROM events WHERE id = ?", (event_id,)))


def get_event_by_slug(slug: str) -> Optional[dict]:
    if not slug:
        return None
    return row_to_event(db.query_one("SELECT * FROM events WHERE slug = ?", (slug,)))


def get_single_event() -> Optional[dict]:
    """The app runs one event; the oldest row is it."""
    return row_to_event(db.query_one("SELECT * FROM events ORDER BY id LIMIT 1"))


def require_event(event_id) -> dict:
    event = get_event_by_id(event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def _ensure_slug_free(slug: str, event_id=None):
    row = db.query_one("SELECT id FROM events WHERE slug = ?", (slug,))
    if row is not None and row["id"] != event_id:
        raise Conflict("Event slug is already in use", {"slug": "Slug is already in use"})


def create_event(values: dict, commit: bool = True) -> int:
    values = validate_settings(values)
    if not values.get("name") or not values.get("slug"):
        raise ValidationError("Event name and slug are required",
                              {k: "Required" for k in ("name", "slug") if not values.get(k)})
    _ensure_slug_free(values["slug"])
    cols = _to_columns(values)
    cols["created_at"] = db.now_ms()
    names = ", ".join(cols)
    marks = ", ".join("?" for _ in cols)
    cur = db.execute(f"INSERT INTO events ({names}) VALUES ({marks})", tuple(cols.values()), commit=commit)
    return cur.lastrowid


def update_event(event_id, data: dict) -> dict:
    require_event(event_id)
    values = validate_settings(data)
    if "slug" in values:
        _ensure_slug_free(values["slug"], event_id)
    if values:
        cols = _to_columns(values)
        assignments = ", ".join(f"{k} = ?" for k in cols)
        db.execute(f"UPDATE events SET {assignments} WHERE id = ?", (*cols.values(), event_id))
    return require_event(event_id)


def toggle_event_pause(event_id, paused: bool) -> dict:
    require_event(event_id)
    db.execute("UPDATE events SET paused = ? WHERE id = ?", (1 if paused else 0, event_id))
    return require_event(event_id)


def _bump(event_id, column: str, extra: str = "", params: tuple = ()) -> dict:
    require_event(event_id)
    db.execute(f"UPDATE events SET {column} = {column} + 1{extra} WHERE id = ?", (*params, event_id))
    return require_event(event_id)


def skip_next(event_id) -> dict:
    return _bump(event_id, "skip_next_seq")


def skip_prev(event_id) -> dict:
    return _bump(event_id, "skip_prev_seq")


def restart_autoplay(event_id) -> dict:
    return _bump(event_id, "restart_seq", ", restart_autoplay = ?", (db.now_ms(),))
