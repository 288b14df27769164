import sqlite3
import unittest
from unittest import mock

from support import AppTestCase

from keepsakes import db, events


class TestDatabase(AppTestCase):
    def test_config_values(self) -> None:
        self.assertIsNone(db.get_config_value("missing"))
        db.set_config_value("greeting", "hi")
        db.set_config_value("greeting", "hello")
        self.assertEqual(db.get_config_value("greeting"), "hello")

    def test_check_connection(self) -> None:
        self.assertTrue(db.check_connection())
        with mock.patch.object(db, "query_one", side_effect=sqlite3.OperationalError("disk gone")):
            self.assertFalse(db.check_connection())

    def test_reset_clears_everything(self) -> None:
        self.make_event()
        (self.upload_dir / "old.jpg").write_bytes(b"x")
        db.reset_to_default(self.upload_dir)
        self.assertIsNone(events.get_single_event())
        self.assertTrue(self.upload_dir.is_dir())
        self.assertEqual(self.stored_files(), [])

    def test_failed_reset_rolls_back(self) -> None:
        event = self.make_event()
        (self.upload_dir / "keep.jpg").write_bytes(b"x")
        broken = db.SCHEMA + "\nCREATE TABLE broken (;"
        with mock.patch.object(db, "SCHEMA", broken):
            with self.assertRaises(sqlite3.Error):
                db.reset_to_default(self.upload_dir)
        self.assertEqual(events.get_single_event()["id"], event["id"])
        self.assertEqual(self.stored_files(), ["keep.jpg"])


if __name__ == "__main__":
    unittest.main()
