"""What an open wall needs to play: ordered slides, dwell times and remote commands.

Admins steer every open wall through three counters on the event row
(skip_next_seq, skip_prev_seq, restart_seq). A wall remembers the counters it
has already acted on and asks for the difference, so each command is applied
once per wall no matter how many screens are showing it.
"""

from typing import Dict, List, Optional

COMMAND_KEYS = {
    "restart": "restart_seq",
    "skip_prev": "skip_prev_seq",
    "skip_next": "skip_next_seq",
}

# Display settings a wall reads from the event
WALL_SETTINGS = (
    "id", "slug", "name", "subtitle", "paused", "autoplay_delay", "transition_duration",
    "gallery_item_delay", "gallery_transition_duration", "allow_downloads",
    "show_captions", "show_author_names", "enable_fullscreen", "mobile_grid_columns",
    "restart_autoplay",
)


def is_gallery(keepsake: dict) -> bool:
    return keepsake["type"] == "gallery" and len(keepsake.get("file_urls") or []) > 1


def wall_playlist(keepsakes: List[dict]) -> List[dict]:
    """Visible keepsakes, pinned first, then newest first."""
    visible = [k for k in keepsakes if not k.get("hidden")]
    return sorted(visible, key=lambda k: (not k.get("pinned"), -k["created_at"], -k["id"]))


def dwell_ms(keepsake: dict, event: dict) -> Optional[int]:
    """How long a slide stays up; None means until the video ends."""
    if keepsake["type"] == "video":
        return None
    if is_gallery(keepsake):
        return event["gallery_item_delay"] * len(keepsake["file_urls"])
    return event["autoplay_delay"]


def current_sequences(event: dict) -> Dict[str, int]:
    return {name: int(event.get(col) or 0) for name, col in COMMAND_KEYS.items()}


def pending_commands(event: dict, seen: Optional[Dict[str, int]]) -> List[dict]:
    """Commands issued since the wall last looked.

    A wall that has never reported (seen is None) starts fresh and gets
    nothing. Restart comes first since it makes earlier skips moot.
    """
    if seen is None:
        return []
    now = current_sequences(event)
    out = []
    restarted = now["restart"] > seen.get("restart", 0)
    if restarted:
        out.append({"command": "restart", "reset_gallery": True})
    for name in ("skip_prev", "skip_next"):
        if restarted:
            continue
        missed = now[name] - seen.get(name, 0)
        if missed > 0:
            out.append({"command": name, "times": missed, "reset_gallery": name == "skip_prev"})
    return out


def wall_slide(keepsake: dict, event: dict) -> dict:
    slide = {
        "id": keepsake["id"],
        "type": keepsake["type"],
        "pinned": keepsake["pinned"],
        "created_at": keepsake["created_at"],
        "text": keepsake["text"],
        "file_urls": keepsake["file_urls"],
        "file_url": keepsake.get("file_url"),
        "dwell_ms": dwell_ms(keepsake, event),
        "gallery_item_ms": event["gallery_item_delay"] if is_gallery(keepsake) else None,
    }
    slide["caption"] = keepsake["caption"] if event["show_captions"] else None
    slide["name"] = keepsake["name"] if event["show_author_names"] else None
    return slide


def wall_feed(event: dict, keepsakes: List[dict], seen: Optional[Dict[str, int]] = None) -> dict:
    return {
        "event": {k: event.get(k) for k in WALL_SETTINGS},
        "slides": [wall_slide(k, event) for k in wall_playlist(keepsakes)],
        "commands": pending_commands(event, seen),
        "sequences": current_sequences(event),
    }


def parse_seen(args) -> Optional[Dict[str, int]]:
    """Read seen counters from query args (seen_restart=3&...).

    None unless all three are present and numeric; a partial report would
    replay the missing commands from zero.
    """
    seen = {}
    for name in COMMAND_KEYS:
        try:
            seen[name] = max(0, int(args[f"seen_{name}"]))
        except (KeyError, ValueError):
            return None
    return seen
