import unittest

from support import AppTestCase, jpeg_bytes, upload

from keepsakes import activity, memories
from keepsakes.errors import NotFound, PayloadTooLarge, ValidationError


class TestAddKeepsake(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.event = self.make_event(consent_required=True)

    def _photos(self, n: int) -> list:
        colors = ["red", "green", "blue", "white", "black"]
        return [upload(f"p{i}.jpg", jpeg_bytes(colors[i % len(colors)])) for i in range(n)]

    def test_single_photo(self) -> None:
        k = memories.add_keepsake(self.event, {"type": "photo", "consent": "true", "caption": " Cheers ",
                                               "name": "Ann"}, self._photos(1))
        self.assertEqual(k["type"], "photo")
        self.assertEqual(k["caption"], "Cheers")
        self.assertEqual(k["name"], "Ann")
        self.assertFalse(k["pinned"])
        self.assertFalse(k["hidden"])
        self.assertEqual(len(k["file_urls"]), 1)
        self.assertTrue(k["file_urls"][0].startswith("/uploads/"))
        self.assertIsNone(k["file_url"])
        self.assertEqual(self.stored_files(), [k["files"][0]["file_name"]])

    def test_several_photos_make_a_gallery(self) -> None:
        k = memories.add_keepsake(self.event, {"type": "photo", "consent": "on"}, self._photos(3))
        self.assertEqual(k["type"], "gallery")
        self.assertEqual([f["original_name"] for f in k["files"]], ["p0.jpg", "p1.jpg", "p2.jpg"])

    def test_gallery_limit(self) -> None:
        event = dict(self.event, gallery_size_limit=2)
        with self.assertRaises(ValidationError) as cm:
            memories.add_keepsake(event, {"type": "photo", "consent": "true"}, self._photos(3))
        self.assertIn("up to 2 photos", cm.exception.message)
        self.assertEqual(self.stored_files(), [])

    def test_gallery_disabled(self) -> None:
        event = dict(self.event, enabled_keepsake_types={"photo": True, "video": True, "text": True,
                                                         "gallery": False})
        with self.assertRaises(ValidationError):
            memories.add_keepsake(event, {"type": "photo", "consent": "true"}, self._photos(2))
        k = memories.add_keepsake(event, {"type": "photo", "consent": "true"}, self._photos(1))
        self.assertEqual(k["type"], "photo")

    def test_consent_required(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            memories.add_keepsake(self.event, {"type": "photo"}, self._photos(1))
        self.assertIn("consent", cm.exception.fields)
        relaxed = dict(self.event, consent_required=False)
        self.assertEqual(memories.add_keepsake(relaxed, {"type": "photo"}, self._photos(1))["type"], "photo")

    def test_video_keeps_first_file(self) -> None:
        files = [upload("clip.mp4", b"fake-video-1", "video/mp4"), upload("clip2.mp4", b"fake-video-2", "video/mp4")]
        k = memories.add_keepsake(self.event, {"type": "video", "consent": "true"}, files)
        self.assertEqual(k["type"], "video")
        self.assertEqual(len(k["file_urls"]), 1)
        self.assertEqual(k["file_url"], k["file_urls"][0])
        self.assertEqual(k["files"][0]["original_name"], "clip.mp4")

    def test_video_rejects_photo(self) -> None:
        with self.assertRaises(ValidationError):
            memories.add_keepsake(self.event, {"type": "video", "consent": "true"}, self._photos(1))

    def test_photo_rejects_other_files(self) -> None:
        with self.assertRaises(ValidationError):
            memories.add_keepsake(self.event, {"type": "photo", "consent": "true"},
                                  [upload("notes.txt", b"hello", "text/plain")])

    def test_file_required(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            memories.add_keepsake(self.event, {"type": "photo", "consent": "true"}, [upload("", b"")])
        self.assertIn("files", cm.exception.fields)

    def test_text(self) -> None:
        with self.assertRaises(ValidationError):
            memories.add_keepsake(self.event, {"type": "text", "consent": "true", "text": "   "}, [])
        k = memories.add_keepsake(self.event, {"type": "text", "consent": "true", "text": "Congrats!"}, [])
        self.assertEqual(k["type"], "text")
        self.assertEqual(k["text"], "Congrats!")
        self.assertEqual(k["file_urls"], [])

    def test_disabled_type(self) -> None:
        event = dict(self.event, enabled_keepsake_types={"photo": True, "video": True, "text": False,
                                                         "gallery": True})
        with self.assertRaises(ValidationError) as cm:
            memories.add_keepsake(event, {"type": "text", "consent": "true", "text": "hi"}, [])
        self.assertIn("type", cm.exception.fields)

    def test_field_limits(self) -> None:
        with self.assertRaises(ValidationError) as cm:
            memories.add_keepsake(self.event, {"type": "text", "consent": "true", "text": "hi",
                                               "caption": "x" * 501}, [])
        self.assertIn("caption", cm.exception.fields)
        with self.assertRaises(ValidationError):
            memories.add_keepsake(self.event, {"type": "text", "consent": "true", "text": "hi",
                                               "name": "x" * 51}, [])
        with self.assertRaises(ValidationError):
            memories.add_keepsake(self.event, {"type": "audio", "consent": "true"}, [])

    def test_upload_log_entries(self) -> None:
        k = memories.add_keepsake(self.event, {"type": "photo", "consent": "true"}, self._photos(1))
        logs = activity.logs_for_event(self.event["id"], category="upload")
        self.assertEqual([e["message"] for e in logs],
                         ["Guest upload completed successfully", "Guest upload started"])
        self.assertEqual(logs[0]["data"]["keepsake_id"], k["id"])
        guest = activity.logs_for_event(self.event["id"], category="guest")
        self.assertEqual([e["message"] for e in guest], ["Guest consent given"])

    def test_failed_upload_cleans_up(self) -> None:
        self.app.config["MAX_FILE_BYTES"] = 10
        with self.assertRaises(PayloadTooLarge):
            memories.add_keepsake(self.event, {"type": "photo", "consent": "true"}, self._photos(2))
        self.assertEqual(self.stored_files(), [])
        self.assertEqual(memories.list_keepsakes(self.event["id"], include_hidden=True), [])
        logs = activity.logs_for_event(self.event["id"], category="upload")
        self.assertEqual(logs[0]["message"], "Guest upload failed")
        self.assertEqual(logs[0]["level"], "error")


class TestModeration(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.event = self.make_event()

    def _text(self, body: str) -> dict:
        return memories.add_keepsake(self.event, {"type": "text", "text": body}, [])

    def _gallery(self, n: int) -> dict:
        files = [upload(f"g{i}.jpg", jpeg_bytes()) for i in range(n)]
        return memories.add_keepsake(self.event, {"type": "photo"}, files)

    def test_list_order_pinned_then_newest(self) -> None:
        first, second, third = self._text("one"), self._text("two"), self._text("three")
        memories.toggle_pin(first["id"], False)
        ids = [k["id"] for k in memories.list_keepsakes(self.event["id"])]
        self.assertEqual(ids, [first["id"], third["id"], second["id"]])

    def test_toggle_pin_stores_opposite(self) -> None:
        k = self._text("hi")
        self.assertTrue(memories.toggle_pin(k["id"], False)["pinned"])
        self.assertFalse(memories.toggle_pin(k["id"], True)["pinned"])

    def test_hidden_only_in_admin_list(self) -> None:
        k = self._text("secret")
        self.assertTrue(memories.toggle_hide(k["id"], False)["hidden"])
        self.assertEqual(memories.list_keepsakes(self.event["id"]), [])
        self.assertEqual(len(memories.list_keepsakes(self.event["id"], include_hidden=True)), 1)
        self.assertFalse(memories.toggle_hide(k["id"], True)["hidden"])

    def test_delete_removes_files(self) -> None:
        k = self._gallery(2)
        self.assertEqual(len(self.stored_files()), 2)
        memories.delete_keepsake(k["id"])
        self.assertIsNone(memories.get_keepsake(k["id"]))
        self.assertEqual(self.stored_files(), [])

    def test_delete_gallery_item(self) -> None:
        k = self._gallery(3)
        urls = k["file_urls"]
        out = memories.delete_gallery_item(k["id"], 1)
        self.assertEqual(out["deleted"], "item")
        self.assertEqual(out["keepsake"]["file_urls"], [urls[0], urls[2]])
        self.assertEqual(len(self.stored_files()), 2)
        with self.assertRaises(ValidationError):
            memories.delete_gallery_item(k["id"], 5)

    def test_delete_last_gallery_item_removes_keepsake(self) -> None:
        k = self._gallery(1)
        out = memories.delete_gallery_item(k["id"], 0)
        self.assertEqual(out, {"deleted": "keepsake", "keepsake": None})
        self.assertIsNone(memories.get_keepsake(k["id"]))
        self.assertEqual(self.stored_files(), [])

    def test_unknown_keepsake(self) -> None:
        for call in (lambda: memories.toggle_pin(404, False), lambda: memories.toggle_hide(404, False),
                     lambda: memories.delete_keepsake(404), lambda: memories.delete_gallery_item(404, 0)):
            with self.assertRaises(NotFound):
                call()


if __name__ == "__main__":
    unittest.main()
