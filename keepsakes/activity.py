"""Activity log: guest, upload, admin and system entries kept in the logs table.

Every entry is also written to the ``keepsakes.activity`` logger so it shows
up in the server output.
"""

import json
import logging
import threading
from typing import Optional

from . import db

log = logging.getLogger("keepsakes.activity")

LEVELS = ("info", "warn", "error", "debug")
CATEGORIES = ("upload", "guest", "admin", "system")

_PY_LEVEL = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR, "debug": logging.DEBUG}

DEDUPE_MS = 5 * 60 * 1000

_seen = {}
_seen_lock = threading.Lock()


def _first_time(key: str) -> bool:
    """True unless the same key was recorded in the last five minutes."""
    now = db.now_ms()
    with _seen_lock:
        for k in [k for k, exp in _seen.items() if exp <= now]:
            del _seen[k]
        if key in _seen:
            return False
        _seen[key] = now + DEDUPE_MS
        return True


def clear_dedupe():
    with _seen_lock:
        _seen.clear()


def record(level: str, category: str, message: str, data: Optional[dict] = None,
           event: Optional[dict] = None, user_agent: Optional[str] = None) -> int:
    if level not in LEVELS:
        raise ValueError(f"unknown log level {level!r}")
    if category not in CATEGORIES:
        raise ValueError(f"unknown log category {category!r}")
    event_id = event["id"] if event else None
    event_slug = event["slug"] if event else None
    log.log(_PY_LEVEL[level], "[%s] %s %s", category, message,
            json.dumps(data, ensure_ascii=False, sort_keys=True) if data else "")
    cur = db.execute(
        "INSERT INTO logs (level, category, message, data, event_id, event_slug, user_agent, created_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (level, category, message, json.dumps(data, ensure_ascii=False) if data is not None else None,
         event_id, event_slug, user_agent, db.now_ms()),
    )
    return cur.lastrowid


# ---------- Guest helpers ----------
def guest_visited_upload_page(event: dict, user_agent: Optional[str] = None):
    if _first_time(f"visit_upload_{event['id']}"):
        record("info", "guest", "Guest visited upload page", None, event, user_agent)


def guest_visited_wall(event: dict, view_mode: Optional[str] = None, user_agent: Optional[str] = None):
    if _first_time(f"visit_wall_{event['id']}_{view_mode or 'unknown'}"):
        record("info", "guest", "Guest visited memory wall", {"view_mode": view_mode}, event, user_agent)


def guest_consent_given(event: dict, guest_name: Optional[str] = None, guest_email: Optional[str] = None):
    if _first_time(f"consent_{event['id']}_{guest_name or 'anonymous'}"):
        record("info", "guest", "Guest consent given",
               {"guest_name": guest_name, "guest_email": guest_email}, event)


# ---------- Upload helpers ----------
def upload_started(event: dict, file_type: str, file_name: Optional[str] = None):
    record("info", "upload", "Guest upload started", {"file_type": file_type, "file_name": file_name}, event)


def upload_completed(event: dict, keepsake_id: int, file_type: str, file_name: Optional[str] = None):
    record("info", "upload", "Guest upload completed successfully",
           {"keepsake_id": keepsake_id, "file_type": file_type, "file_name": file_name}, event)


def upload_failed(event: dict, error: str, file_type: Optional[str] = None, file_name: Optional[str] = None):
    record("error", "upload", "Guest upload failed",
           {"error": error, "file_type": file_type, "file_name": file_name}, event)


# ---------- Queries ----------
def _row_to_entry(row) -> dict:
    return {
        "id": row["id"],
        "level": row["level"],
        "category": row["category"],
        "message": row["message"],
        "data": json.loads(row["data"]) if row["data"] else None,
        "event_id": row["event_id"],
        "event_slug": row["event_slug"],
        "user_agent": row["user_agent"],
        "created_at": row["created_at"],
    }


def logs_for_event(event_id: int, limit: int = 100, category: Optional[str] = None) -> list:
    limit = max(1, min(int(limit), 1000))
    if category:
        rows = db.query_all(
            "SELECT * FROM logs WHERE event_id = ? AND category = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (event_id, category, limit),
        )
    else:
        rows = db.query_all(
            "SELECT * FROM logs WHERE event_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (event_id, limit),
        )
    return [_row_to_entry(r) for r in rows]


def recent_logs(limit: int = 50) -> list:
    limit = max(1, min(int(limit), 1000))
    rows = db.query_all("SELECT * FROM logs ORDER BY created_at DESC, id DESC LIMIT ?", (limit,))
    return [_row_to_entry(r) for r in rows]
