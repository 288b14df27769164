"""Site password gate, admin accounts and the admin session."""

import hmac
import logging
from typing import Optional

from flask import current_app, session
from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .errors import Conflict, ValidationError

log = logging.getLogger(__name__)

ADMIN_SESSION_KEY = "admin_session"
SITE_SESSION_KEY = "site_ok"

SITE_PASSWORD_KEY = "site_password_hash"
PROTECTION_KEY = "password_protection_enabled"


# ---------- Site password ----------
def _env_password() -> str:
    return current_app.config.get("SITE_PASSWORD", "")


def initialize_site_config(site_password: str, commit: bool = True):
    set_site_password(site_password, commit=commit)
    log.info("Site config initialized with password protection: %s", bool(site_password))


def get_password_protection_status() -> bool:
    value = db.get_config_value(PROTECTION_KEY)
    if value is not None:
        return value == "true"
    return bool(_env_password())


def set_password_protection_status(enabled: bool):
    if enabled and not has_site_password():
        raise ValidationError("Set a site password before enabling protection.",
                              {"enabled": "No site password"})
    db.set_config_value(PROTECTION_KEY, "true" if enabled else "false")
    log.info("Password protection status set to: %s", enabled)


def has_site_password() -> bool:
    return bool(db.get_config_value(SITE_PASSWORD_KEY)) or bool(_env_password())


def set_site_password(password: str, commit: bool = True):
    """Store a new site password; an empty one turns protection off."""
    password = password or ""
    db.set_config_value(SITE_PASSWORD_KEY, generate_password_hash(password) if password else "",
                        commit=commit)
    db.set_config_value(PROTECTION_KEY, "true" if password else "false", commit=commit)
    log.info("Site password updated, protection enabled: %s", bool(password))


def verify_site_password(password: str) -> bool:
    if not password:
        return False
    stored = db.get_config_value(SITE_PASSWORD_KEY)
    if stored:
        return check_password_hash(stored, password)
    env = _env_password()
    return bool(env) and hmac.compare_digest(env.encode(), password.encode())


def grant_site_access():
    session[SITE_SESSION_KEY] = True


def has_site_access() -> bool:
    if not get_password_protection_status():
        return True
    return bool(session.get(SITE_SESSION_KEY))


# ---------- Admin users ----------
def admin_users_exist(event_id) -> bool:
    return db.query_one("SELECT 1 FROM admin_users WHERE event_id = ?", (event_id,)) is not None


def create_admin_user(username: str, password: str, event_id, commit: bool = True) -> int:
    username = (username or "").strip()
    if not 3 <= len(username) <= 50:
        raise ValidationError("Username must be at least 3 characters", {"username": "3 to 50 characters"})
    if len(password or "") < 6:
        raise ValidationError("Password must be at least 6 characters", {"password": "At least 6 characters"})
    if admin_users_exist(event_id):
        raise Conflict("Admin user already exists for this event")
    cur = db.execute(
        "INSERT INTO admin_users (event_id, username, password_hash, created_at) VALUES (?, ?, ?, ?)",
        (event_id, username, generate_password_hash(password), db.now_ms()),
        commit=commit,
    )
    return cur.lastrowid


def authenticate_admin(username: str, password: str, event_id) -> Optional[dict]:
    """The admin row on success, None on any mismatch."""
    row = db.query_one(
        "SELECT id, username, event_id, password_hash FROM admin_users WHERE username = ? AND event_id = ?",
        ((username or "").strip(), event_id),
    )
    if row is None or not check_password_hash(row["password_hash"], password or ""):
        return None
    return {"id": row["id"], "username": row["username"], "event_id": row["event_id"]}


# ---------- Admin session ----------
def start_admin_session(user_id: int, event_id: int):
    now = db.now_ms()
    session[ADMIN_SESSION_KEY] = {
        "user_id": user_id,
        "event_id": event_id,
        "created_at": now,
        "expires_at": now + current_app.config["ADMIN_SESSION_SECONDS"] * 1000,
    }
    session.permanent = True


def admin_session(event_id) -> Optional[dict]:
    """The session payload if it is unexpired and belongs to this event."""
    data = session.get(ADMIN_SESSION_KEY)
    if not isinstance(data, dict):
        return None
    if data.get("expires_at", 0) < db.now_ms():
        return None
    if data.get("event_id") != event_id:
        return None
    return data


def end_admin_session():
    session.pop(ADMIN_SESSION_KEY, None)
