import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from flask import (Blueprint, Flask, Response, after_this_request, current_app, jsonify, redirect,
                   request, send_file, send_from_directory)
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import RequestEntityTooLarge

from . import activity, auth, db, events, firstrun, guests, media, memories, pages, wall
from .config import APP_NAME, load_settings
from .errors import Conflict, Forbidden, KeepsakeError, NotFound, Unauthorized, ValidationError

log = logging.getLogger(__name__)

bp = Blueprint("keepsakes", __name__)

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

_BOOL = TypeAdapter(bool)


# ---------- Helpers ----------
def _html(body: str) -> Response:
    return Response(body, mimetype="text/html")


def _no_store(resp: Response) -> Response:
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _user_agent() -> Optional[str]:
    return request.headers.get("User-Agent")


def _current_event() -> dict:
    event = events.get_single_event()
    if event is None:
        raise NotFound("No event has been set up yet.")
    return event


def _require_site_access():
    if not auth.has_site_access():
        raise Unauthorized("Password required")


def _require_admin() -> dict:
    event = _current_event()
    if auth.admin_session(event["id"]) is None:
        raise Unauthorized("Admin login required")
    return event


def _admin_log(event: dict, message: str, data: Optional[dict] = None):
    activity.record("info", "admin", message, data, event=event, user_agent=_user_agent())


def _slug_redirect():
    """Send stale ?eventSlug= links to the current slug."""
    wanted = request.args.get("eventSlug")
    if not wanted:
        return None
    event = events.get_single_event()
    if event is None or wanted == event["slug"]:
        return None
    args = request.args.to_dict()
    args["eventSlug"] = event["slug"]
    return redirect(f"{request.path}?{urlencode(args)}", code=307)


def _guest_gate(check_slug: bool = False):
    """A redirect or the locked page when a guest may not see the page yet, else None."""
    if firstrun.is_first_time_setup():
        return redirect("/setup")
    if check_slug:
        moved = _slug_redirect()
        if moved is not None:
            return moved
    if not auth.has_site_access():
        return _html(pages.LOCKED_HTML)
    return None


def _guest_page(body: str, check_slug: bool = False):
    blocked = _guest_gate(check_slug)
    return blocked if blocked is not None else _html(body)


def _flag(data: dict, key: str, default: bool) -> bool:
    """A boolean from a JSON body, accepting the usual spellings (true, "false", 0, "on")."""
    if data.get(key) is None:
        return default
    try:
        return _BOOL.validate_python(data[key])
    except PydanticValidationError as exc:
        raise ValidationError(f"{key} must be true or false", {key: "Not a boolean"}) from exc


def _int_arg(name: str, default: int, lo: int, hi: int) -> int:
    try:
        value = int(request.args.get(name, default))
    except ValueError:
        value = default
    return max(lo, min(value, hi))


# ---------- Pages ----------
@bp.get("/")
def home():
    return _guest_page(pages.HOME_HTML)


@bp.get("/upload")
def upload_page():
    blocked = _guest_gate(check_slug=True)
    if blocked is not None:
        return blocked
    activity.guest_visited_upload_page(_current_event(), _user_agent())
    return _html(pages.UPLOAD_HTML)


@bp.get("/thanks")
def thanks_page():
    return _guest_page(pages.THANKS_HTML, check_slug=True)


@bp.get("/wall")
def wall_page():
    blocked = _guest_gate(check_slug=True)
    if blocked is not None:
        return blocked
    activity.guest_visited_wall(_current_event(), request.args.get("view", "swipe"), _user_agent())
    return _html(pages.WALL_HTML)


@bp.get("/gallery")
def gallery_page():
    return _guest_page(pages.GALLERY_HTML)


@bp.get("/admin")
def admin_page():
    if firstrun.is_first_time_setup():
        return redirect("/setup")
    moved = _slug_redirect()
    return moved if moved is not None else _html(pages.ADMIN_HTML)


@bp.get("/setup")
def setup_page():
    if not firstrun.is_first_time_setup():
        return redirect("/admin")
    return _html(pages.SETUP_HTML)


@bp.get("/setup/success")
def setup_success_page():
    return _html(pages.SETUP_SUCCESS_HTML)


@bp.get("/about")
def about_page():
    return _html(pages.ABOUT_HTML)


@bp.get("/privacy")
def privacy_page():
    return _html(pages.PRIVACY_HTML)


@bp.get("/terms")
def terms_page():
    return _html(pages.TERMS_HTML)


# ---------- Public API ----------
@bp.get("/api/auth/protection-status")
def protection_status():
    return _no_store(jsonify({
        "enabled": auth.get_password_protection_status(),
        "authenticated": auth.has_site_access(),
    }))


@bp.post("/api/auth/verify-password")
def verify_password():
    password = _json_body().get("password") or request.form.get("password") or ""
    if not auth.verify_site_password(password):
        activity.record("warn", "guest", "Invalid site password attempt", user_agent=_user_agent())
        raise Unauthorized("Invalid password")
    auth.grant_site_access()
    return jsonify({"success": True})


@bp.get("/api/database/health-check")
def health_check():
    ok = db.check_connection()
    resp = jsonify({"healthy": ok, "timestamp": db.now_ms()})
    resp.status_code = 200 if ok else 503
    return _no_store(resp)


@bp.route("/api/network-test", methods=["GET", "HEAD"])
def network_test():
    resp = jsonify({"ok": True, "timestamp": db.now_ms()})
    resp.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return resp


@bp.get("/api/event")
def event_info():
    _require_site_access()
    return _no_store(jsonify({
        "event": _current_event(),
        "google_analytics_id": firstrun.get_google_analytics_id(),
    }))


@bp.get("/api/wall")
def wall_feed():
    _require_site_access()
    event = _current_event()
    feed = wall.wall_feed(event, memories.list_keepsakes(event["id"]), wall.parse_seen(request.args))
    return _no_store(jsonify(feed))


@bp.get("/api/gallery")
def gallery_feed():
    _require_site_access()
    event = _current_event()
    return _no_store(jsonify({"event": event, "keepsakes": memories.list_keepsakes(event["id"])}))


@bp.post("/api/keepsakes")
def create_keepsake():
    _require_site_access()
    event = _current_event()
    keepsake = memories.add_keepsake(event, request.form.to_dict(), request.files.getlist("files"))
    return jsonify({"success": True, "keepsake": keepsake}), 201


@bp.post("/api/guests")
def create_guest():
    _require_site_access()
    event = _current_event()
    data = _json_body() or request.form.to_dict()
    guest_id = guests.add_guest_email(event, data)
    activity.guest_consent_given(event, data.get("name"), data.get("email"))
    return jsonify({"success": True, "id": guest_id}), 201


@bp.get("/api/setup/defaults")
def setup_defaults():
    if not firstrun.is_first_time_setup():
        raise Conflict("Setup has already been completed")
    return _no_store(jsonify(firstrun.setup_defaults()))


@bp.post("/api/setup")
def run_setup():
    if not firstrun.is_first_time_setup():
        raise Conflict("Setup has already been completed")
    event = firstrun.complete_first_time_setup(_json_body())
    activity.record("info", "system", "First time setup completed", {"event_slug": event["slug"]}, event=event)
    return jsonify({"success": True, "event": event}), 201


# ---------- Admin API ----------
@bp.post("/api/admin/login")
def admin_login():
    event = _current_event()
    data = _json_body()
    user = auth.authenticate_admin(data.get("username"), data.get("password"), event["id"])
    if user is None:
        activity.record("warn", "admin", "Failed admin login", {"username": data.get("username")},
                        event=event, user_agent=_user_agent())
        raise Unauthorized("Invalid credentials")
    auth.start_admin_session(user["id"], event["id"])
    _admin_log(event, "Admin logged in", {"username": user["username"]})
    return jsonify({"success": True, "user": user})


@bp.post("/api/admin/logout")
def admin_logout():
    auth.end_admin_session()
    return jsonify({"success": True})


@bp.get("/api/admin/session")
def admin_session_info():
    event = events.get_single_event()
    data = auth.admin_session(event["id"]) if event else None
    return _no_store(jsonify({
        "authenticated": data is not None,
        "expires_at": data["expires_at"] if data else None,
        "admin_exists": auth.admin_users_exist(event["id"]) if event else False,
    }))


@bp.get("/api/admin/dashboard")
def admin_dashboard():
    event = _require_admin()
    return _no_store(jsonify({
        "event": event,
        "keepsakes": memories.list_keepsakes(event["id"], include_hidden=True),
        "protection_enabled": auth.get_password_protection_status(),
    }))


@bp.post("/api/admin/event")
def admin_update_event():
    event = _require_admin()
    updated = events.update_event(event["id"], _json_body())
    _admin_log(updated, "Event settings updated")
    return jsonify({"success": True, "event": updated})


@bp.post("/api/admin/event/pause")
def admin_pause():
    event = _require_admin()
    paused = _flag(_json_body(), "paused", not event["paused"])
    updated = events.toggle_event_pause(event["id"], paused)
    _admin_log(updated, "Wall paused" if paused else "Wall resumed")
    return jsonify({"success": True, "event": updated})


@bp.post("/api/admin/event/skip-next")
def admin_skip_next():
    event = events.skip_next(_require_admin()["id"])
    _admin_log(event, "Wall skipped to next keepsake")
    return jsonify({"success": True, "sequences": wall.current_sequences(event)})


@bp.post("/api/admin/event/skip-prev")
def admin_skip_prev():
    event = events.skip_prev(_require_admin()["id"])
    _admin_log(event, "Wall skipped to previous keepsake")
    return jsonify({"success": True, "sequences": wall.current_sequences(event)})


@bp.post("/api/admin/event/restart")
def admin_restart():
    event = events.restart_autoplay(_require_admin()["id"])
    _admin_log(event, "Wall autoplay restarted")
    return jsonify({"success": True, "sequences": wall.current_sequences(event)})


def _own_keepsake(event: dict, keepsake_id: int) -> dict:
    keepsake = memories.require_keepsake(keepsake_id)
    if keepsake["event_id"] != event["id"]:
        raise NotFound("Keepsake not found.")
    return keepsake


@bp.post("/api/admin/keepsakes/<int:keepsake_id>/pin")
def admin_pin(keepsake_id):
    event = _require_admin()
    keepsake = _own_keepsake(event, keepsake_id)
    pinned = _flag(_json_body(), "pinned", keepsake["pinned"])
    return jsonify({"success": True, "keepsake": memories.toggle_pin(keepsake_id, pinned)})


@bp.post("/api/admin/keepsakes/<int:keepsake_id>/hide")
def admin_hide(keepsake_id):
    event = _require_admin()
    keepsake = _own_keepsake(event, keepsake_id)
    hidden = _flag(_json_body(), "hidden", keepsake["hidden"])
    return jsonify({"success": True, "keepsake": memories.toggle_hide(keepsake_id, hidden)})


@bp.post("/api/admin/keepsakes/<int:keepsake_id>/delete")
def admin_delete(keepsake_id):
    event = _require_admin()
    _own_keepsake(event, keepsake_id)
    memories.delete_keepsake(keepsake_id)
    _admin_log(event, "Keepsake deleted", {"keepsake_id": keepsake_id})
    return jsonify({"success": True})


@bp.post("/api/admin/keepsakes/<int:keepsake_id>/items/<int:item_index>/delete")
def admin_delete_gallery_item(keepsake_id, item_index):
    event = _require_admin()
    _own_keepsake(event, keepsake_id)
    result = memories.delete_gallery_item(keepsake_id, item_index)
    _admin_log(event, "Gallery item deleted", {"keepsake_id": keepsake_id, "index": item_index})
    return jsonify({"success": True, **result})


@bp.post("/api/admin/site-password")
def admin_site_password():
    event = _require_admin()
    auth.set_site_password(_json_body().get("password") or "")
    _admin_log(event, "Site password updated")
    return jsonify({"success": True, "enabled": auth.get_password_protection_status()})


@bp.post("/api/admin/protection")
def admin_protection():
    event = _require_admin()
    enabled = _flag(_json_body(), "enabled", False)
    auth.set_password_protection_status(enabled)
    _admin_log(event, "Password protection " + ("enabled" if enabled else "disabled"))
    return jsonify({"success": True, "enabled": enabled})


@bp.get("/api/admin/logs")
def admin_logs():
    event = _require_admin()
    category = request.args.get("category") or None
    if category is not None and category not in activity.CATEGORIES:
        raise ValidationError("Unknown log category", {"category": category})
    limit = _int_arg("limit", 100, 1, 1000)
    if request.args.get("scope") == "all":
        logs = activity.recent_logs(limit)
    else:
        logs = activity.logs_for_event(event["id"], limit, category)
    return _no_store(jsonify({"logs": logs}))


@bp.get("/api/admin/guests")
def admin_guests():
    event = _require_admin()
    return _no_store(jsonify({"guests": guests.list_guests(event["id"])}))


@bp.post("/api/admin/reset")
def admin_reset():
    _require_admin()
    if _json_body().get("confirm") is not True:
        raise ValidationError("Reset must be confirmed", {"confirm": "Required"})
    db.reset_to_default(Path(current_app.config["UPLOAD_DIR"]))
    activity.clear_dedupe()
    auth.end_admin_session()
    activity.record("warn", "system", "Application reset to default state", user_agent=_user_agent())
    return jsonify({"success": True})


# ---------- Files ----------
def _download_entries(keepsake: dict):
    base = media.download_filename(keepsake["caption"] or keepsake["type"], keepsake["name"])
    upload_dir = Path(current_app.config["UPLOAD_DIR"])
    many = len(keepsake["files"]) > 1
    for i, f in enumerate(keepsake["files"]):
        name = f"{base}_{i + 1}" if many else base
        yield upload_dir / f["file_name"], name + media.file_extension(f["file_name"])


def _send_zip(entries, download_name: str):
    zpath = media.build_zip(entries)

    @after_this_request
    def _cleanup(response):
        try:
            zpath.unlink()
        except FileNotFoundError:
            pass
        return response

    return send_file(zpath, as_attachment=True, download_name=download_name,
                     mimetype="application/zip", conditional=True)


def _require_downloads() -> dict:
    """The event, if the caller may download from it."""
    event = _current_event()
    if auth.admin_session(event["id"]) is not None:
        return event
    _require_site_access()
    if not event["allow_downloads"]:
        raise Forbidden("Downloads are disabled")
    return event


@bp.get("/download")
def download_all():
    event = _require_downloads()
    entries = [e for k in memories.list_keepsakes(event["id"]) for e in _download_entries(k)]
    if not entries:
        raise NotFound("Nothing to download yet.")
    return _send_zip(entries, f"keepsakes_{event['slug']}.zip")


@bp.get("/download/<int:keepsake_id>")
def download_one(keepsake_id):
    event = _require_downloads()
    keepsake = memories.require_keepsake(keepsake_id)
    if keepsake["event_id"] != event["id"] or not keepsake["files"]:
        raise NotFound("Nothing to download for this keepsake.")
    entries = list(_download_entries(keepsake))
    if len(entries) == 1:
        src, name = entries[0]
        return send_from_directory(src.parent, src.name, as_attachment=True, download_name=name)
    return _send_zip(entries, media.download_filename(keepsake["caption"] or keepsake["type"],
                                                      keepsake["name"]) + ".zip")


@bp.get("/uploads/<path:filename>")
def serve_upload(filename):
    resp = send_from_directory(current_app.config["UPLOAD_DIR"], filename, conditional=True, etag=True)
    resp.headers["Cache-Control"] = "public, max-age=604800, immutable"
    return resp


# ---------- Errors ----------
def handle_keepsake_error(exc: KeepsakeError):
    if exc.status >= 500:
        log.error("Unhandled keepsake error: %s", exc.message)
    resp = jsonify(exc.to_dict())
    resp.status_code = exc.status
    return resp


def handle_too_large(exc: RequestEntityTooLarge):
    max_mb = current_app.config["MAX_FILE_BYTES"] // (1024 * 1024)
    resp = jsonify({"success": False, "error": f"Upload too large (max {max_mb} MB per file)"})
    resp.status_code = 413
    return resp


# ---------- App ----------
def _configure_logging(app: Flask):
    level = getattr(logging, app.config["LOG_LEVEL"], logging.INFO)
    root = logging.getLogger("keepsakes")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    app.logger.setLevel(level)


def create_app(overrides: Optional[dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(load_settings())
    if overrides:
        app.config.update(overrides)
    app.config["PERMANENT_SESSION_LIFETIME"] = app.config["ADMIN_SESSION_SECONDS"]
    _configure_logging(app)

    Path(app.config["UPLOAD_DIR"]).mkdir(parents=True, exist_ok=True)
    Path(app.config["DATABASE"]).parent.mkdir(parents=True, exist_ok=True)
    app.teardown_appcontext(db.close_db)
    with app.app_context():
        db.init_db()

    app.register_error_handler(KeepsakeError, handle_keepsake_error)
    app.register_error_handler(RequestEntityTooLarge, handle_too_large)
    app.register_blueprint(bp)
    app.logger.info("%s ready, data in %s", APP_NAME, app.config["DATA_DIR"])
    return app
