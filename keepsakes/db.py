"""SQLite storage: per-request connection, schema and reset."""

import logging
import shutil
import sqlite3
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional

from flask import current_app, g

log = logging.getLogger(__name__)

SLOW_QUERY_MS = 250

# Drop order respects foreign keys
TABLES = ("logs", "keepsake_files", "keepsakes", "guests", "admin_users", "events", "app_config")

SCHEMA = """
CREATE TABLE IF NOT EXISTS app_config (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  key TEXT UNIQUE NOT NULL,
  value TEXT,
  created_at INTEGER NOT NULL,
  updated_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS events (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  slug TEXT UNIQUE NOT NULL,
  name TEXT NOT NULL,
  subtitle TEXT,
  hero_image_url TEXT,
  hero_color TEXT,
  instructions TEXT,
  consent_required INTEGER NOT NULL DEFAULT 0,
  paused INTEGER NOT NULL DEFAULT 0,
  created_at INTEGER NOT NULL,
  skip_next_seq INTEGER NOT NULL DEFAULT 0,
  skip_prev_seq INTEGER NOT NULL DEFAULT 0,
  restart_seq INTEGER NOT NULL DEFAULT 0,
  restart_autoplay INTEGER,
  autoplay_delay INTEGER NOT NULL DEFAULT 5000,
  transition_duration INTEGER NOT NULL DEFAULT 1000,
  gallery_transition_duration INTEGER NOT NULL DEFAULT 500,
  gallery_item_delay INTEGER NOT NULL DEFAULT 5000,
  allow_downloads INTEGER NOT NULL DEFAULT 1,
  enabled_keepsake_types TEXT NOT NULL DEFAULT '{"photo": true, "video": true, "text": true, "gallery": true}',
  show_captions INTEGER NOT NULL DEFAULT 1,
  show_author_names INTEGER NOT NULL DEFAULT 1,
  enable_fullscreen INTEGER NOT NULL DEFAULT 1,
  mobile_grid_columns INTEGER NOT NULL DEFAULT 2,
  gallery_size_limit INTEGER NOT NULL DEFAULT 10,
  email_registration_enabled INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS admin_users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  event_id INTEGER REFERENCES events(id) ON DELETE CASCADE,
  username TEXT NOT NULL,
  password_hash TEXT NOT NULL,
  created_at INTEGER NOT NULL,
  UNIQUE(event_id, username)
);

CREATE TABLE IF NOT EXISTS guests (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  event_id INTEGER REFERENCES events(id) ON DELETE CASCADE,
  email TEXT NOT NULL,
  name TEXT,
  has_consented INTEGER NOT NULL DEFAULT 1,
  created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS keepsakes (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
  type TEXT NOT NULL CHECK (type IN ('photo', 'video', 'text', 'gallery')),
  text TEXT,
  caption TEXT,
  name TEXT,
  pinned INTEGER NOT NULL DEFAULT 0,
  hidden INTEGER NOT NULL DEFAULT 0,
  created_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS keepsakes_wall_order
  ON keepsakes(event_id, pinned DESC, created_at DESC);

CREATE TABLE IF NOT EXISTS keepsake_files (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  keepsake_id INTEGER NOT NULL REFERENCES keepsakes(id) ON DELETE CASCADE,
  position INTEGER NOT NULL,
  file_name TEXT NOT NULL,
  original_name TEXT,
  content_type TEXT,
  size INTEGER,
  taken_ms INTEGER
);

CREATE TABLE IF NOT EXISTS logs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  level TEXT NOT NULL,
  category TEXT,
  message TEXT NOT NULL,
  data TEXT,
  event_id INTEGER REFERENCES events(id) ON DELETE SET NULL,
  event_slug TEXT,
  user_agent TEXT,
  created_at INTEGER NOT NULL
);
"""


def now_ms() -> int:
    return int(time.time() * 1000)


def connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.row_factory = sqlite3.Row
    return conn


def get_db() -> sqlite3.Connection:
    if "db" not in g:
        g.db = connect(current_app.config["DATABASE"])
    return g.db


def close_db(error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db(db: Optional[sqlite3.Connection] = None):
    db = db or get_db()
    db.executescript(SCHEMA)
    db.commit()


def _timed(db: sqlite3.Connection, sql: str, params: Iterable[Any]) -> sqlite3.Cursor:
    start = time.monotonic()
    try:
        cur = db.execute(sql, tuple(params))
    except sqlite3.Error:
        log.exception("Database query error: %s", sql.split("\n", 1)[0])
        raise
    took = (time.monotonic() - start) * 1000
    if took > SLOW_QUERY_MS:
        log.warning("Slow query (%.0f ms): %s", took, sql.split("\n", 1)[0])
    return cur


def query_one(sql: str, params: Iterable[Any] = ()) -> Optional[sqlite3.Row]:
    return _timed(get_db(), sql, params).fetchone()


def query_all(sql: str, params: Iterable[Any] = ()) -> List[sqlite3.Row]:
    return _timed(get_db(), sql, params).fetchall()


def execute(sql: str, params: Iterable[Any] = (), commit: bool = True) -> sqlite3.Cursor:
    db = get_db()
    cur = _timed(db, sql, params)
    if commit:
        db.commit()
    return cur


def get_config_value(key: str) -> Optional[str]:
    row = query_one("SELECT value FROM app_config WHERE key = ?", (key,))
    return row["value"] if row else None


def set_config_value(key: str, value: str, commit: bool = True):
    ts = now_ms()
    execute(
        "INSERT INTO app_config (key, value, created_at, updated_at) VALUES (?, ?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
        (key, value, ts, ts),
        commit=commit,
    )


def reset_to_default(upload_dir: Optional[Path] = None):
    """Drop every table and recreate an empty schema in one transaction.

    Uploaded files are removed only after the schema swap commits.
    """
    db = get_db()
    if db.in_transaction:
        db.commit()
    try:
        db.execute("BEGIN")
        for table in TABLES:
            db.execute(f"DROP TABLE IF EXISTS {table}")
        for stmt in SCHEMA.split(";"):
            if stmt.strip():
                db.execute(stmt)
        db.commit()
    except sqlite3.Error:
        db.rollback()
        raise
    log.info("Database reset to default state")
    if upload_dir is not None and upload_dir.exists():
        shutil.rmtree(upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)


def check_connection() -> bool:
    try:
        return query_one("SELECT 1 AS ok") is not None
    except sqlite3.Error:
        log.exception("Database connection check failed")
        return False
