import unittest

from keepsakes import wall

EVENT = {
    "id": 1, "slug": "party", "name": "Party", "subtitle": None, "paused": False,
    "autoplay_delay": 4000, "transition_duration": 1000, "gallery_item_delay": 1500,
    "gallery_transition_duration": 500, "allow_downloads": True, "show_captions": True,
    "show_author_names": True, "enable_fullscreen": True, "mobile_grid_columns": 2,
    "restart_autoplay": None, "skip_next_seq": 0, "skip_prev_seq": 0, "restart_seq": 0,
}


def _k(id_, created_at, type_="photo", pinned=False, hidden=False, urls=None, **extra):
    urls = ["/uploads/x.jpg"] if urls is None else urls
    k = {"id": id_, "type": type_, "created_at": created_at, "pinned": pinned, "hidden": hidden,
         "text": None, "caption": f"cap {id_}", "name": f"guest {id_}", "file_urls": urls,
         "file_url": urls[0] if type_ == "video" and urls else None}
    k.update(extra)
    return k


class TestPlaylist(unittest.TestCase):
    def test_order_and_visibility(self) -> None:
        items = [
            _k(1, 100),
            _k(2, 300),
            _k(3, 200, pinned=True),
            _k(4, 400, hidden=True),
            _k(5, 300),
        ]
        self.assertEqual([k["id"] for k in wall.wall_playlist(items)], [3, 5, 2, 1])

    def test_empty(self) -> None:
        self.assertEqual(wall.wall_playlist([]), [])


class TestDwell(unittest.TestCase):
    def test_by_type(self) -> None:
        self.assertEqual(wall.dwell_ms(_k(1, 1), EVENT), 4000)
        self.assertEqual(wall.dwell_ms(_k(2, 1, type_="text", urls=[], text="hi"), EVENT), 4000)
        self.assertIsNone(wall.dwell_ms(_k(3, 1, type_="video", urls=["/uploads/v.mp4"]), EVENT))
        gallery = _k(4, 1, type_="gallery", urls=["/a.jpg", "/b.jpg", "/c.jpg"])
        self.assertEqual(wall.dwell_ms(gallery, EVENT), 4500)

    def test_single_photo_gallery_uses_autoplay_delay(self) -> None:
        self.assertEqual(wall.dwell_ms(_k(1, 1, type_="gallery", urls=["/a.jpg"]), EVENT), 4000)


class TestCommands(unittest.TestCase):
    def test_first_poll_gets_nothing(self) -> None:
        event = dict(EVENT, skip_next_seq=3, restart_seq=2)
        self.assertEqual(wall.pending_commands(event, None), [])

    def test_skips_since_last_seen(self) -> None:
        event = dict(EVENT, skip_next_seq=3, skip_prev_seq=1)
        cmds = wall.pending_commands(event, {"restart": 0, "skip_prev": 0, "skip_next": 1})
        self.assertEqual(cmds, [
            {"command": "skip_prev", "times": 1, "reset_gallery": True},
            {"command": "skip_next", "times": 2, "reset_gallery": False},
        ])

    def test_restart_supersedes_skips(self) -> None:
        event = dict(EVENT, skip_next_seq=5, restart_seq=1)
        cmds = wall.pending_commands(event, {"restart": 0, "skip_prev": 0, "skip_next": 0})
        self.assertEqual(cmds, [{"command": "restart", "reset_gallery": True}])

    def test_up_to_date(self) -> None:
        event = dict(EVENT, skip_next_seq=2, skip_prev_seq=1, restart_seq=1)
        self.assertEqual(wall.pending_commands(event, wall.current_sequences(event)), [])

    def test_parse_seen(self) -> None:
        self.assertIsNone(wall.parse_seen({}))
        self.assertEqual(wall.parse_seen({"seen_restart": "2", "seen_skip_next": "-4", "seen_skip_prev": "1"}),
                         {"restart": 2, "skip_prev": 1, "skip_next": 0})
        self.assertIsNone(wall.parse_seen({"seen_restart": "2", "seen_skip_next": "1", "seen_skip_prev": "x"}))

    def test_partial_seen_replays_nothing(self) -> None:
        # A wall that reports only one counter is treated as a first poll
        event = dict(EVENT, skip_next_seq=3)
        seen = wall.parse_seen({"seen_restart": "0"})
        self.assertIsNone(seen)
        self.assertEqual(wall.pending_commands(event, seen), [])


class TestFeed(unittest.TestCase):
    def test_feed_shape(self) -> None:
        items = [_k(1, 100), _k(2, 200, type_="gallery", urls=["/a.jpg", "/b.jpg"])]
        feed = wall.wall_feed(dict(EVENT, skip_next_seq=1), items, {"skip_next": 0})
        self.assertEqual(feed["event"]["slug"], "party")
        self.assertNotIn("skip_next_seq", feed["event"])
        self.assertEqual([s["id"] for s in feed["slides"]], [2, 1])
        self.assertEqual(feed["slides"][0]["gallery_item_ms"], 1500)
        self.assertEqual(feed["slides"][0]["dwell_ms"], 3000)
        self.assertIsNone(feed["slides"][1]["gallery_item_ms"])
        self.assertEqual(feed["commands"], [{"command": "skip_next", "times": 1, "reset_gallery": False}])
        self.assertEqual(feed["sequences"], {"restart": 0, "skip_prev": 0, "skip_next": 1})

    def test_display_flags_hide_caption_and_author(self) -> None:
        event = dict(EVENT, show_captions=False, show_author_names=False)
        slide = wall.wall_slide(_k(1, 1), event)
        self.assertIsNone(slide["caption"])
        self.assertIsNone(slide["name"])
        slide = wall.wall_slide(_k(1, 1), EVENT)
        self.assertEqual(slide["caption"], "cap 1")
        self.assertEqual(slide["name"], "guest 1")


if __name__ == "__main__":
    unittest.main()
