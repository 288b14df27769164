"""Uploaded media: naming, size limits, capture time and ZIP export."""

import logging
import mimetypes
import os
import re
import secrets
import tempfile
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Tuple

from PIL import ExifTags, Image, IptcImagePlugin

from .db import now_ms
from .errors import PayloadTooLarge, ValidationError

log = logging.getLogger(__name__)

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic"}
VIDEO_EXTS = {".mp4", ".mov", ".webm", ".m4v", ".avi"}
DOWNLOAD_EXTS = IMAGE_EXTS | VIDEO_EXTS

_slug_re = re.compile(r"[^a-zA-Z0-9_.-]+")
_download_re = re.compile(r"[^a-zA-Z0-9\s-]")

EXIF_DATE_KEYS = ("DateTimeOriginal", "CreateDate", "DateTime")
XMP_DATE_TAGS = ("xmp:CreateDate", "xmp:DateCreated", "xmp:ModifyDate", "exif:DateTimeOriginal")


# ---------- Names ----------
def media_kind(filename: str, mimetype: Optional[str] = None) -> Optional[str]:
    """'image', 'video' or None for anything the wall can't show."""
    ext = os.path.splitext(filename or "")[1].lower()
    if ext in IMAGE_EXTS:
        return "image"
    if ext in VIDEO_EXTS:
        return "video"
    major = (mimetype or mimetypes.guess_type(filename or "")[0] or "").split("/", 1)[0]
    return major if major in ("image", "video") else None


def safe_name(original: str, kind: str) -> str:
    allowed, fallback = (IMAGE_EXTS, ".jpg") if kind == "image" else (VIDEO_EXTS, ".mp4")
    base, ext = os.path.splitext(original or "upload")
    ext = ext.lower()
    if ext not in allowed:
        guessed = mimetypes.guess_extension(mimetypes.guess_type(original or "")[0] or "") or fallback
        ext = guessed if guessed in allowed else fallback
    base = _slug_re.sub("_", base)[:60].strip("._") or "upload"
    return base + ext


def stored_name(original: str, kind: str) -> str:
    return f"{now_ms()}-{secrets.token_hex(3)}-{safe_name(original, kind)}"


def file_extension(name: str) -> str:
    ext = os.path.splitext((name or "").split("?", 1)[0])[1].lower()
    if ext in DOWNLOAD_EXTS:
        return ext
    if "video" in (name or "") or "mp4" in (name or ""):
        return ".mp4"
    return ".jpg"


def download_filename(keepsake_name: str, author_name: Optional[str] = None,
                      index: Optional[int] = None) -> str:
    """Base name (no extension) for a downloaded keepsake file."""
    name = _download_re.sub("", keepsake_name or "").strip()
    author = f"_{_download_re.sub('', author_name).strip()}" if author_name else ""
    suffix = f"_{index + 1}" if index is not None else ""
    return f"keepsake_{name}{author}{suffix}"


# ---------- Saving ----------
def stream_size(storage) -> Optional[int]:
    try:
        storage.stream.seek(0, os.SEEK_END)
        size = storage.stream.tell()
        storage.stream.seek(0)
    except (AttributeError, OSError, ValueError):
        return None
    return size


def save_upload(storage, upload_dir: Path, max_bytes: int, kind: str) -> dict:
    """Write one werkzeug FileStorage under upload_dir and describe it."""
    original = storage.filename or "upload"
    size = stream_size(storage)
    if size is not None and size > max_bytes:
        raise PayloadTooLarge(f"{original} is too large (max {max_bytes // (1024 * 1024)} MB)")
    if size == 0:
        raise ValidationError(f"{original} is empty", {"files": "Empty file"})
    upload_dir.mkdir(parents=True, exist_ok=True)
    name = stored_name(original, kind)
    path = upload_dir / name
    storage.save(path)
    return {
        "file_name": name,
        "original_name": original,
        "content_type": storage.mimetype or mimetypes.guess_type(name)[0],
        "size": size if size is not None else path.stat().st_size,
        "taken_ms": capture_time_ms(path) if kind == "image" else None,
    }


def remove_files(upload_dir: Path, names: Iterable[str]):
    for name in names:
        if not name or "/" in name or ".." in name:
            continue
        try:
            (upload_dir / name).unlink()
        except FileNotFoundError:
            log.warning("Upload %s already gone", name)


# ---------- Capture time ----------
def _epoch_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def parse_capture_time(s: str) -> Optional[int]:
    """Accept common EXIF/IPTC/XMP date formats and return epoch ms (naive = UTC)."""
    s = (s or "").strip().rstrip("\x00")
    if not s:
        return None
    if "T" in s or s.endswith("Z"):
        iso = s.replace("Z", "+00:00")
        date_part, sep, rest = iso.partition("T")
        if sep and date_part.count(":") == 2:
            iso = date_part.replace(":", "-") + "T" + rest
        try:
            return _epoch_ms(datetime.fromisoformat(iso))
        except ValueError:
            return None
    for fmt in ("%Y:%m:%d %H:%M:%S", "%Y:%m:%d %H:%M:%S.%f", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f"):
        try:
            return _epoch_ms(datetime.strptime(s, fmt))
        except ValueError:
            continue
    return None


def _decode(v) -> str:
    if isinstance(v, (bytes, bytearray)):
        return v.decode("utf-8", "ignore")
    return "" if v is None else str(v)


def _exif_time(im: Image.Image) -> Optional[int]:
    exif = im.getexif()
    tags = {ExifTags.TAGS.get(k, str(k)): v for k, v in exif.items()}
    # DateTimeOriginal lives in the Exif sub-IFD
    try:
        for k, v in exif.get_ifd(ExifTags.IFD.Exif).items():
            tags.setdefault(ExifTags.TAGS.get(k, str(k)), v)
    except (KeyError, AttributeError):
        pass
    for key in EXIF_DATE_KEYS:
        ts = parse_capture_time(_decode(tags.get(key)))
        if ts:
            return ts
    return None


def _iptc_time(im: Image.Image) -> Optional[int]:
    iptc = IptcImagePlugin.getiptcinfo(im) or {}
    date_s = _decode(iptc.get((2, 55)))  # DateCreated YYYYMMDD
    time_s = _decode(iptc.get((2, 60))) or "000000"  # TimeCreated HHMMSS
    if len(date_s) >= 8 and len(time_s) >= 6:
        return parse_capture_time(
            f"{date_s[:4]}-{date_s[4:6]}-{date_s[6:8]} {time_s[:2]}:{time_s[2:4]}:{time_s[4:6]}")
    return None


def _xmp_time(im: Image.Image) -> Optional[int]:
    info = im.info or {}
    for key in ("XML:com.adobe.xmp", "xmp", "XMP"):
        data = _decode(info.get(key))
        for tag in XMP_DATE_TAGS:
            i = data.find(tag)
            if i == -1:
                continue
            chunk = data[i:i + 200]
            j1 = chunk.find(">")
            j2 = chunk.find("<", j1 + 1)
            if j1 != -1 and j2 != -1:
                ts = parse_capture_time(chunk[j1 + 1:j2])
                if ts:
                    return ts
    return None


def capture_time_ms(path: Path) -> Optional[int]:
    """When the photo was taken, from EXIF, then IPTC, then XMP."""
    try:
        with Image.open(path) as im:
            for reader in (_exif_time, _iptc_time, _xmp_time):
                try:
                    ts = reader(im)
                except (OSError, ValueError, TypeError, SyntaxError):
                    continue
                if ts:
                    return ts
    except (OSError, ValueError):
        log.debug("No readable image metadata in %s", path.name)
    return None


# ---------- ZIP ----------
def build_zip(entries: Iterable[Tuple[Path, str]], prefix: str = "keepsakes") -> Path:
    """Write entries (source path, name inside the archive) to a temp ZIP."""
    fd, tmp = tempfile.mkstemp(prefix=f"{prefix}_", suffix=".zip")
    os.close(fd)
    used = set()
    with zipfile.ZipFile(tmp, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for src, arcname in entries:
            if not src.is_file():
                continue
            stem, ext = os.path.splitext(arcname)
            n, candidate = 1, arcname
            while candidate in used:
                n += 1
                candidate = f"{stem}_{n}{ext}"
            used.add(candidate)
            zf.write(src, arcname=candidate)
    return Path(tmp)
