import sqlite3
import unittest
from unittest import mock

from support import AppTestCase

from keepsakes import auth, db, events, firstrun
from keepsakes.errors import Conflict, ValidationError


def _setup_data(**extra) -> dict:
    data = {
        "event_name": "Lena's 40th",
        "event_slug": "lena-40",
        "admin_username": "lena",
        "admin_password": "hunter22",
    }
    data.update(extra)
    return data


class TestFirstRun(AppTestCase):
    def test_pending_until_done(self) -> None:
        self.assertTrue(firstrun.is_first_time_setup())
        firstrun.complete_first_time_setup(_setup_data())
        self.assertFalse(firstrun.is_first_time_setup())

    def test_creates_event_and_admin(self) -> None:
        event = firstrun.complete_first_time_setup(_setup_data(
            event_subtitle="Forty and fabulous", gallery_size_limit=5, allow_downloads=False,
            enabled_keepsake_types={"video": False}))
        self.assertEqual(event["slug"], "lena-40")
        self.assertEqual(event["subtitle"], "Forty and fabulous")
        self.assertEqual(event["gallery_size_limit"], 5)
        self.assertFalse(event["allow_downloads"])
        self.assertTrue(event["consent_required"])
        self.assertFalse(event["enabled_keepsake_types"]["video"])
        self.assertIsNotNone(auth.authenticate_admin("lena", "hunter22", event["id"]))
        self.assertFalse(auth.get_password_protection_status())
        self.assertIsNone(firstrun.get_google_analytics_id())

    def test_slug_derived_from_name(self) -> None:
        data = _setup_data()
        del data["event_slug"]
        self.assertEqual(firstrun.complete_first_time_setup(data)["slug"], "lena-s-40th")

    def test_site_password_and_analytics(self) -> None:
        firstrun.complete_first_time_setup(_setup_data(
            enable_password_protection=True, site_password="party!",
            enable_google_analytics=True, google_analytics_id="G-TEST123"))
        self.assertTrue(auth.get_password_protection_status())
        self.assertTrue(auth.verify_site_password("party!"))
        self.assertEqual(firstrun.get_google_analytics_id(), "G-TEST123")

    def test_dependent_fields(self) -> None:
        with self.assertRaises(ValidationError):
            firstrun.complete_first_time_setup(_setup_data(enable_password_protection=True))
        with self.assertRaises(ValidationError):
            firstrun.complete_first_time_setup(_setup_data(enable_google_analytics=True))

    def test_validation(self) -> None:
        for bad in ({"admin_username": "ab"}, {"admin_password": "12345"}, {"event_slug": "Not OK"},
                    {"autoplay_delay": 100}):
            with self.subTest(bad=bad):
                with self.assertRaises(ValidationError) as cm:
                    firstrun.complete_first_time_setup(_setup_data(**bad))
                self.assertIn(next(iter(bad)), cm.exception.fields)
        self.assertTrue(firstrun.is_first_time_setup())

    def test_failure_rolls_back(self) -> None:
        self.make_event(name="Taken", slug="lena-40")
        with self.assertRaises(Conflict):
            firstrun.complete_first_time_setup(_setup_data())
        self.assertEqual(db.query_one("SELECT COUNT(*) AS n FROM admin_users")["n"], 0)
        self.assertEqual(len(db.query_all("SELECT id FROM events")), 1)

    def test_failed_check_counts_as_pending(self) -> None:
        firstrun.complete_first_time_setup(_setup_data())
        with mock.patch.object(db, "query_one", side_effect=sqlite3.OperationalError("locked")):
            self.assertTrue(firstrun.is_first_time_setup())
        self.assertFalse(firstrun.is_first_time_setup())

    def test_defaults(self) -> None:
        defaults = firstrun.setup_defaults()
        self.assertEqual(defaults["event_name"], "My Special Event")
        self.assertEqual(defaults["event_slug"], "my-event")
        self.assertTrue(defaults["consent_required"])

    def test_event_values_round_trip_through_settings(self) -> None:
        values = firstrun.SetupData.model_validate(_setup_data()).event_values()
        self.assertEqual(events.validate_settings(values)["slug"], "lena-40")


if __name__ == "__main__":
    unittest.main()
