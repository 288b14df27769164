"""Keepsakes: what guests upload and what admins moderate."""

import logging
import sqlite3
from pathlib import Path
from typing import List, Literal, Optional

from flask import current_app
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import activity, db, media
from .errors import KeepsakeError, NotFound, ValidationError, from_pydantic

log = logging.getLogger(__name__)


class KeepsakeForm(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    type: Literal["photo", "video", "text"] = "photo"
    caption: Optional[str] = Field(None, max_length=500)
    name: Optional[str] = Field(None, max_length=50)
    text: Optional[str] = Field(None, max_length=5000)
    consent: bool = False


def _upload_dir() -> Path:
    return Path(current_app.config["UPLOAD_DIR"])


def file_url(file_name: str) -> str:
    return f"/uploads/{file_name}"


def _to_keepsake(row, files) -> dict:
    files = sorted(files, key=lambda f: f["position"])
    urls = [file_url(f["file_name"]) for f in files]
    return {
        "id": row["id"],
        "event_id": row["event_id"],
        "type": row["type"],
        "text": row["text"],
        "caption": row["caption"],
        "name": row["name"],
        "pinned": bool(row["pinned"]),
        "hidden": bool(row["hidden"]),
        "created_at": row["created_at"],
        "file_urls": urls,
        "file_url": urls[0] if row["type"] == "video" and urls else None,
        "files": [
            {
                "file_name": f["file_name"],
                "original_name": f["original_name"],
                "content_type": f["content_type"],
                "size": f["size"],
                "taken_ms": f["taken_ms"],
                "url": file_url(f["file_name"]),
            }
            for f in files
        ],
    }


def get_keepsake(keepsake_id) -> Optional[dict]:
    row = db.query_one("SELECT * FROM keepsakes WHERE id = ?", (keepsake_id,))
    if row is None:
        return None
    files = db.query_all("SELECT * FROM keepsake_files WHERE keepsake_id = ?", (keepsake_id,))
    return _to_keepsake(row, files)


def require_keepsake(keepsake_id) -> dict:
    keepsake = get_keepsake(keepsake_id)
    if keepsake is None:
        raise NotFound("Keepsake not found.")
    return keepsake


def list_keepsakes(event_id, include_hidden: bool = False) -> List[dict]:
    """Pinned first, then newest first."""
    where = "event_id = ?" if include_hidden else "event_id = ? AND hidden = 0"
    rows = db.query_all(
        f"SELECT * FROM keepsakes WHERE {where} ORDER BY pinned DESC, created_at DESC, id DESC",
        (event_id,),
    )
    files = {}
    for f in db.query_all(
        "SELECT f.* FROM keepsake_files f JOIN keepsakes k ON k.id = f.keepsake_id WHERE k.event_id = ?",
        (event_id,),
    ):
        files.setdefault(f["keepsake_id"], []).append(f)
    return [_to_keepsake(r, files.get(r["id"], [])) for r in rows]


# ---------- Upload ----------
def _check_submission(event: dict, form: KeepsakeForm, files: list) -> str:
    """Return the keepsake type to store, or raise ValidationError."""
    enabled = event["enabled_keepsake_types"]
    if not enabled.get(form.type, True):
        raise ValidationError(f"{form.type.capitalize()} keepsakes are not enabled for this event.",
                              {"type": "Not enabled"})
    if event["consent_required"] and not form.consent:
        raise ValidationError("You must agree to the terms before uploading.", {"consent": "Required"})

    if form.type == "text":
        if not (form.text or "").strip():
            raise ValidationError("Please write a message.", {"text": "Required"})
        return "text"

    if not files:
        raise ValidationError("Please select a file to upload.", {"files": "Required"})

    if form.type == "video":
        if media.media_kind(files[0].filename, files[0].mimetype) != "video":
            raise ValidationError("Please choose a video file.", {"files": "Not a video"})
        return "video"

    for f in files:
        if media.media_kind(f.filename, f.mimetype) != "image":
            raise ValidationError(f"{f.filename} is not a photo.", {"files": "Not a photo"})
    if len(files) == 1:
        return "photo"
    if not enabled.get("gallery", True):
        raise ValidationError("Only one photo can be uploaded when galleries are disabled.",
                              {"files": "Galleries disabled"})
    limit = event["gallery_size_limit"]
    if len(files) > limit:
        raise ValidationError(f"You can only upload up to {limit} photos in a gallery.",
                              {"files": "Too many photos"})
    return "gallery"


def add_keepsake(event: dict, form_data: dict, files: list) -> dict:
    try:
        form = KeepsakeForm.model_validate(form_data)
    except PydanticValidationError as exc:
        raise from_pydantic(exc, "Invalid keepsake") from exc
    files = [f for f in files if f and f.filename]
    kind = _check_submission(event, form, files)
    if kind == "video":
        files = files[:1]
    first_name = files[0].filename if files else None

    activity.upload_started(event, kind, first_name)
    saved = []
    conn = db.get_db()
    try:
        for f in files:
            saved.append(media.save_upload(f, _upload_dir(), current_app.config["MAX_FILE_BYTES"],
                                           "video" if kind == "video" else "image"))
        cur = db.execute(
            "INSERT INTO keepsakes (event_id, type, text, caption, name, pinned, hidden, created_at) "
            "VALUES (?, ?, ?, ?, ?, 0, 0, ?)",
            (event["id"], kind, form.text if kind == "text" else None,
             form.caption or None, form.name or None, db.now_ms()),
            commit=False,
        )
        keepsake_id = cur.lastrowid
        for pos, info in enumerate(saved):
            db.execute(
                "INSERT INTO keepsake_files (keepsake_id, position, file_name, original_name, content_type, size, taken_ms) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (keepsake_id, pos, info["file_name"], info["original_name"], info["content_type"],
                 info["size"], info["taken_ms"]),
                commit=False,
            )
        conn.commit()
    except (KeepsakeError, OSError, sqlite3.Error) as exc:
        conn.rollback()
        media.remove_files(_upload_dir(), [s["file_name"] for s in saved])
        activity.upload_failed(event, getattr(exc, "message", None) or str(exc), kind, first_name)
        raise

    activity.upload_completed(event, keepsake_id, kind, first_name)
    if form.consent and event["consent_required"]:
        activity.guest_consent_given(event, form.name)
    return require_keepsake(keepsake_id)


# ---------- Moderation ----------
def toggle_pin(keepsake_id, pinned: bool) -> dict:
    require_keepsake(keepsake_id)
    db.execute("UPDATE keepsakes SET pinned = ? WHERE id = ?", (0 if pinned else 1, keepsake_id))
    return require_keepsake(keepsake_id)


def toggle_hide(keepsake_id, hidden: bool) -> dict:
    require_keepsake(keepsake_id)
    db.execute("UPDATE keepsakes SET hidden = ? WHERE id = ?", (0 if hidden else 1, keepsake_id))
    return require_keepsake(keepsake_id)


def delete_keepsake(keepsake_id) -> dict:
    keepsake = require_keepsake(keepsake_id)
    db.execute("DELETE FROM keepsakes WHERE id = ?", (keepsake_id,))
    media.remove_files(_upload_dir(), [f["file_name"] for f in keepsake["files"]])
    log.info("Deleted keepsake %s with %d file(s)", keepsake_id, len(keepsake["files"]))
    return keepsake


def delete_gallery_item(keepsake_id, item_index: int) -> dict:
    """Remove one photo; a keepsake left with nothing to show goes entirely."""
    keepsake = require_keepsake(keepsake_id)
    files = keepsake["files"]
    if len(files) <= 1:
        delete_keepsake(keepsake_id)
        return {"deleted": "keepsake", "keepsake": None}
    if not 0 <= item_index < len(files):
        raise ValidationError("Gallery item does not exist.", {"index": "Out of range"})

    victim = files[item_index]["file_name"]
    conn = db.get_db()
    db.execute("DELETE FROM keepsake_files WHERE keepsake_id = ? AND file_name = ?",
               (keepsake_id, victim), commit=False)
    for pos, f in enumerate(x for x in files if x["file_name"] != victim):
        db.execute("UPDATE keepsake_files SET position = ? WHERE keepsake_id = ? AND file_name = ?",
                   (pos, keepsake_id, f["file_name"]), commit=False)
    conn.commit()
    media.remove_files(_upload_dir(), [victim])
    return {"deleted": "item", "keepsake": require_keepsake(keepsake_id)}
