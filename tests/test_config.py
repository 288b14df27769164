import unittest
from pathlib import Path

from keepsakes.config import load_settings


class TestLoadSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = load_settings({"KEEPSAKES_DATA_DIR": "/tmp/ks"})
        self.assertEqual(cfg["DATA_DIR"], Path("/tmp/ks"))
        self.assertEqual(cfg["DATABASE"], str(Path("/tmp/ks") / "keepsakes.sqlite3"))
        self.assertEqual(cfg["UPLOAD_DIR"], Path("/tmp/ks") / "uploads")
        self.assertEqual(cfg["DEFAULT_EVENT_SLUG"], "my-event")
        self.assertEqual(cfg["PORT"], 8081)
        self.assertEqual(cfg["MAX_FILE_BYTES"], 100 * 1024 * 1024)
        self.assertEqual(cfg["ADMIN_SESSION_SECONDS"], 24 * 60 * 60)
        self.assertFalse(cfg["SESSION_COOKIE_SECURE"])
        self.assertTrue(cfg["SECRET_KEY"])

    def test_env_overrides_and_bad_numbers(self) -> None:
        cfg = load_settings({
            "MAX_UPLOAD_MB": "2",
            "ADMIN_SESSION_HOURS": "1",
            "PORT": "not-a-port",
            "SECRET_KEY": "s3cret",
            "SESSION_COOKIE_SECURE": "yes",
            "LOG_LEVEL": "debug",
        })
        self.assertEqual(cfg["MAX_FILE_BYTES"], 2 * 1024 * 1024)
        self.assertEqual(cfg["MAX_CONTENT_LENGTH"], 40 * 1024 * 1024)
        self.assertEqual(cfg["ADMIN_SESSION_SECONDS"], 3600)
        self.assertEqual(cfg["PORT"], 8081)
        self.assertEqual(cfg["SECRET_KEY"], "s3cret")
        self.assertTrue(cfg["SESSION_COOKIE_SECURE"])
        self.assertEqual(cfg["LOG_LEVEL"], "DEBUG")


if __name__ == "__main__":
    unittest.main()
