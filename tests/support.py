import io
import tempfile
import unittest
from pathlib import Path

from PIL import Image
from werkzeug.datastructures import FileStorage

from keepsakes import activity, create_app, events


def jpeg_bytes(color: str = "red", exif=None) -> bytes:
    buf = io.BytesIO()
    img = Image.new("RGB", (16, 16), color)
    if exif is not None:
        img.save(buf, "JPEG", exif=exif)
    else:
        img.save(buf, "JPEG")
    return buf.getvalue()


def upload(name: str, data: bytes, mimetype: str = "image/jpeg") -> FileStorage:
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type=mimetype)


def make_app(root: Path, **overrides):
    config = {
        "TESTING": True,
        "DATA_DIR": root,
        "DATABASE": str(root / "test.sqlite3"),
        "UPLOAD_DIR": root / "uploads",
        "SECRET_KEY": "test-secret",
        "SITE_PASSWORD": "",
        "DEFAULT_EVENT_SLUG": "my-event",
        "MAX_FILE_BYTES": 5 * 1024 * 1024,
        "ADMIN_SESSION_SECONDS": 24 * 60 * 60,
        "LOG_LEVEL": "WARNING",
    }
    config.update(overrides)
    return create_app(config)


class AppTestCase(unittest.TestCase):
    """App on a temp data dir with a request context pushed for direct calls."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.upload_dir = self.root / "uploads"
        self.app = make_app(self.root)
        self.ctx = self.app.test_request_context("/")
        self.ctx.push()
        activity.clear_dedupe()

    def tearDown(self) -> None:
        self.ctx.pop()
        self._tmp.cleanup()

    def make_event(self, **values) -> dict:
        data = {"name": "Garden Party", "slug": "garden-party"}
        data.update(values)
        return events.require_event(events.create_event(data))

    def stored_files(self) -> list:
        return sorted(p.name for p in self.upload_dir.iterdir())
