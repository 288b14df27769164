"""Environment-driven settings for the Keepsakes app."""

import os
import secrets
from pathlib import Path
from typing import Mapping, Optional

BASE = Path(__file__).resolve().parent.parent

# Used when the setup wizard has not picked a slug yet
DEFAULT_EVENT_SLUG = "my-event"

DEFAULT_EVENT = {
    "name": "My Special Event",
    "subtitle": "Celebrating Together!",
    "instructions": (
        "Share your favorite memory from this event! It can be a photo, a short video, "
        "or a heartfelt message. We'll be showing these on a big screen during the event."
    ),
    "consent_required": True,
}

APP_NAME = "Keepsakes"

_TRUE = {"1", "true", "yes", "on"}


def _int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = (environ.get(key) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> dict:
    env = os.environ if environ is None else environ
    data_dir = Path(env.get("KEEPSAKES_DATA_DIR", "").strip() or (BASE / "data"))
    max_mb = _int(env, "MAX_UPLOAD_MB", 100)
    return {
        "DATA_DIR": data_dir,
        "DATABASE": str(data_dir / "keepsakes.sqlite3"),
        "UPLOAD_DIR": data_dir / "uploads",
        "SECRET_KEY": env.get("SECRET_KEY", "").strip() or secrets.token_hex(16),
        "SITE_PASSWORD": env.get("SITE_PASSWORD", "").strip(),
        "DEFAULT_EVENT_SLUG": env.get("DEFAULT_EVENT_SLUG", "").strip() or DEFAULT_EVENT_SLUG,
        "MAX_FILE_BYTES": max_mb * 1024 * 1024,
        # Whole request may carry a full gallery
        "MAX_CONTENT_LENGTH": max_mb * 1024 * 1024 * 20,
        "ADMIN_SESSION_SECONDS": _int(env, "ADMIN_SESSION_HOURS", 24) * 60 * 60,
        "SESSION_COOKIE_SECURE": (env.get("SESSION_COOKIE_SECURE", "0").strip().lower() in _TRUE),
        "SESSION_COOKIE_SAMESITE": "Lax",
        "LOG_LEVEL": env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        "PORT": _int(env, "PORT", 8081),
    }
