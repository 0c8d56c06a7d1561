"""Flask route handlers for the Revenue Tracker dashboard (Blueprint)."""

import io
import time
from datetime import datetime
from urllib.parse import quote

from flask import Blueprint, jsonify, redirect, request, send_file

from csv_import import parse_revenue_csv
from dashboard import render_admin, render_dashboard
from metrics import compute_metrics
from revenue_manager import (
    add_entry,
    delete_entry,
    export_workbook,
    get_dashboard_data,
    import_entries,
    update_settings,
)
from revenue_model import DEFAULT_TARGET_REVENUE, normalize_app_data

bp = Blueprint("main", __name__)

# Module-level references, set by init_routes()
STORE = None
DEMO_MODE = False

NO_STORE = "no-store, no-cache, must-revalidate, max-age=0"


def init_routes(config):
    """Inject dependencies from create_app(). Call before registering blueprint."""
    global STORE, DEMO_MODE
    STORE = config["STORE"]
    DEMO_MODE = config.get("DEMO_MODE", False)


def _now() -> datetime:
    return datetime.now()


def _back_to_admin(message: str):
    return redirect(f"/admin?saved={quote(message)}")


# Demo mode: block all write operations
@bp.before_request
def check_demo_mode():
    if not DEMO_MODE:
        return
    if request.method in ("GET", "HEAD", "OPTIONS"):
        return
    if request.is_json or request.path.startswith("/api/"):
        return jsonify({"success": False, "error": "Demo mode - changes are disabled."}), 403
    return _back_to_admin("Demo mode - changes are disabled")


@bp.route("/")
def index():
    data = get_dashboard_data(STORE, _now())
    return render_dashboard(data, demo_mode=DEMO_MODE)


@bp.route("/admin")
def admin():
    doc = STORE.load()
    return render_admin(doc, saved=request.args.get("saved", ""), demo_mode=DEMO_MODE)


@bp.route("/admin/settings", methods=["POST"])
def admin_settings():
    patch = {}
    if "targetRevenue" in request.form:
        patch["targetRevenue"] = request.form.get("targetRevenue", "")
    if "demoDay" in request.form:
        patch["demoDay"] = request.form.get("demoDay", "")
    try:
        _, saved = update_settings(STORE, patch)
    except ValueError as e:
        return _back_to_admin(str(e))
    return _back_to_admin("Goals saved" if saved else "Could not save goals - try again")


@bp.route("/admin/entries", methods=["POST"])
def admin_add_entry():
    partial = {
        "amount": request.form.get("amount", ""),
        "date": request.form.get("date", ""),
        "note": request.form.get("note", ""),
    }
    try:
        _, saved = add_entry(STORE, partial)
    except ValueError as e:
        return _back_to_admin(str(e))
    return _back_to_admin("Revenue added" if saved else "Could not save entry - try again")


@bp.route("/admin/entries/<entry_id>/delete", methods=["POST"])
def admin_delete_entry(entry_id):
    try:
        _, saved = delete_entry(STORE, entry_id)
    except KeyError:
        return _back_to_admin("Entry not found - it may already be deleted")
    return _back_to_admin("Entry deleted" if saved else "Could not delete entry - try again")


@bp.route("/admin/import", methods=["POST"])
def admin_import():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return _back_to_admin("Choose a CSV file to import")
    text = upload.read().decode("utf-8-sig", errors="replace")
    rows = parse_revenue_csv(text)
    if not rows:
        return _back_to_admin("No entries found. The CSV needs Date and Amount columns.")
    _, added, saved = import_entries(STORE, rows)
    if not saved:
        return _back_to_admin("Could not save imported entries - try again")
    return _back_to_admin(f"Imported {added} new entries ({len(rows) - added} duplicates skipped)")


# ── JSON API ──

@bp.route("/api/data", methods=["GET"])
def api_get_data():
    """Whole document. Always 200; the store already degrades to defaults on any backend error."""
    doc = STORE.load()
    resp = jsonify({**doc, "_ts": int(time.time() * 1000)})
    resp.headers["Cache-Control"] = NO_STORE
    return resp


@bp.route("/api/data", methods=["PUT"])
def api_put_data():
    """Overwrite the whole document."""
    raw = request.get_json(silent=True)
    if not isinstance(raw, dict):
        return jsonify({"error": "Body must be a JSON AppData object"}), 400
    doc = normalize_app_data(raw, getattr(STORE, "default_target", DEFAULT_TARGET_REVENUE))
    if not STORE.save(doc):
        return jsonify({"error": "Failed to save data"}), 500
    return jsonify({"success": True})


@bp.route("/api/entries", methods=["POST"])
def api_add_entry():
    try:
        doc, saved = add_entry(STORE, request.get_json(silent=True) or {})
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    if not saved:
        return jsonify({"success": False, "error": "Failed to save data", "data": doc}), 500
    return jsonify({"success": True, "data": doc, "entry": doc["entries"][-1]})


@bp.route("/api/entries/<entry_id>", methods=["DELETE"])
def api_delete_entry(entry_id):
    try:
        doc, saved = delete_entry(STORE, entry_id)
    except KeyError:
        return jsonify({"success": False, "error": f"No entry with id {entry_id}"}), 404
    if not saved:
        return jsonify({"success": False, "error": "Failed to save data", "data": doc}), 500
    return jsonify({"success": True, "data": doc})


@bp.route("/api/settings", methods=["PATCH"])
def api_update_settings():
    try:
        doc, saved = update_settings(STORE, request.get_json(silent=True) or {})
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    if not saved:
        return jsonify({"success": False, "error": "Failed to save data", "data": doc}), 500
    return jsonify({"success": True, "data": doc})


@bp.route("/api/metrics")
def api_metrics():
    doc = STORE.load()
    resp = jsonify(compute_metrics(doc["entries"], doc["settings"], _now()))
    resp.headers["Cache-Control"] = NO_STORE
    return resp


@bp.route("/api/export")
def api_export():
    """Entries, cumulative series and summary as an Excel workbook."""
    now = _now()
    buf = io.BytesIO()
    export_workbook(STORE.load(), buf, now)
    buf.seek(0)
    return send_file(
        buf,
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=f"revenue-{now.strftime('%Y-%m-%d')}.xlsx",
    )


@bp.route("/manifest.json")
def manifest():
    return jsonify({
        "name": "Revenue Tracker",
        "short_name": "Revenue",
        "start_url": "/",
        "display": "standalone",
        "background_color": "#000000",
        "theme_color": "#000000",
    })
