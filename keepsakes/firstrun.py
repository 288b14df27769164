"""First-run setup: create the event, its admin and the site settings in one go."""

import logging
import sqlite3
from typing import Optional

from flask import current_app
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from . import auth, db, events
from .config import DEFAULT_EVENT
from .errors import from_pydantic

log = logging.getLogger(__name__)

GA_KEY = "google_analytics_id"


class SetupData(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    event_name: str = Field(..., min_length=1, max_length=100)
    event_slug: str = Field(..., min_length=1, max_length=50, pattern=events.SLUG_PATTERN)
    event_subtitle: Optional[str] = Field(None, max_length=150)
    event_instructions: Optional[str] = Field(None, max_length=500)

    admin_username: str = Field(..., min_length=3, max_length=50)
    admin_password: str = Field(..., min_length=6)

    enable_password_protection: bool = False
    site_password: Optional[str] = None

    enable_google_analytics: bool = False
    google_analytics_id: Optional[str] = Field(None, max_length=64)

    consent_required: bool = True
    allow_downloads: bool = True
    show_captions: bool = True
    show_author_names: bool = True
    enable_fullscreen: bool = True
    autoplay_delay: int = Field(5000, ge=1000, le=30000)
    gallery_item_delay: int = Field(5000, ge=1000, le=10000)
    gallery_transition_duration: int = Field(500, ge=100, le=1000)
    mobile_grid_columns: int = Field(2, ge=1, le=4)
    gallery_size_limit: int = Field(10, ge=1, le=20)
    email_registration_enabled: bool = False
    enabled_keepsake_types: events.KeepsakeTypes = Field(default_factory=events.KeepsakeTypes)

    @model_validator(mode="before")
    @classmethod
    def _fill_slug(cls, data):
        if isinstance(data, dict) and not (data.get("event_slug") or "").strip():
            data = dict(data, event_slug=events.generate_slug(data.get("event_name") or ""))
        return data

    @model_validator(mode="after")
    def _dependent_fields(self):
        if self.enable_password_protection and not self.site_password:
            raise ValueError("Site password is required when password protection is enabled")
        if self.enable_google_analytics and not self.google_analytics_id:
            raise ValueError("Google Analytics ID is required when analytics is enabled")
        return self

    def event_values(self) -> dict:
        return {
            "name": self.event_name,
            "slug": self.event_slug,
            "subtitle": self.event_subtitle or None,
            "instructions": self.event_instructions or None,
            "consent_required": self.consent_required,
            "allow_downloads": self.allow_downloads,
            "show_captions": self.show_captions,
            "show_author_names": self.show_author_names,
            "enable_fullscreen": self.enable_fullscreen,
            "autoplay_delay": self.autoplay_delay,
            "gallery_item_delay": self.gallery_item_delay,
            "gallery_transition_duration": self.gallery_transition_duration,
            "mobile_grid_columns": self.mobile_grid_columns,
            "gallery_size_limit": self.gallery_size_limit,
            "email_registration_enabled": self.email_registration_enabled,
            "enabled_keepsake_types": self.enabled_keepsake_types.model_dump(),
        }


def setup_defaults() -> dict:
    """Prefill values for the setup form."""
    return {
        "event_name": DEFAULT_EVENT["name"],
        "event_slug": current_app.config["DEFAULT_EVENT_SLUG"],
        "event_subtitle": DEFAULT_EVENT["subtitle"],
        "event_instructions": DEFAULT_EVENT["instructions"],
        "consent_required": DEFAULT_EVENT["consent_required"],
    }


def is_first_time_setup() -> bool:
    """True until both an event and an admin exist; a failed check counts as true."""
    try:
        event_count = db.query_one("SELECT COUNT(*) AS n FROM events")["n"]
        admin_count = db.query_one("SELECT COUNT(*) AS n FROM admin_users")["n"]
    except sqlite3.Error:
        log.exception("Error checking setup status")
        return True
    return event_count == 0 and admin_count == 0


def complete_first_time_setup(data: dict) -> dict:
    try:
        setup = SetupData.model_validate(data or {})
    except PydanticValidationError as exc:
        raise from_pydantic(exc, "Invalid setup data") from exc

    conn = db.get_db()
    try:
        event_id = events.create_event(setup.event_values(), commit=False)
        if setup.enable_password_protection:
            auth.initialize_site_config(setup.site_password, commit=False)
        auth.create_admin_user(setup.admin_username, setup.admin_password, event_id, commit=False)
        if setup.enable_google_analytics:
            db.set_config_value(GA_KEY, setup.google_analytics_id, commit=False)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    log.info("First time setup complete for event %s", setup.event_slug)
    return events.require_event(event_id)


def get_google_analytics_id() -> Optional[str]:
    return db.get_config_value(GA_KEY) or None
