"""
Local server for the Revenue Tracker dashboard.
Run: python server.py
Then open http://localhost:5000 for the dashboard, /admin to record revenue and edit goals.
Data goes to the Vercel Blob named by REV_TRACKER_BLOB_NAME when BLOB_READ_WRITE_TOKEN is set,
otherwise to a local JSON file (REV_TRACKER_DATA_PATH).
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

BASE = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE))

from blob_store import DEFAULT_BLOB_NAME, DEFAULT_TIMEOUT, BlobStore, LocalStore
from revenue_model import DEFAULT_TARGET_REVENUE


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        print(f"[Config] Ignoring invalid {name}={raw!r}, using {default}")
        return default


def load_app_config(env_file: Path = None) -> dict:
    """Read app configuration from the environment (after loading .env)."""
    load_dotenv(env_file or BASE / ".env")
    data_path = os.environ.get("REV_TRACKER_DATA_PATH", "")
    return {
        "BLOB_TOKEN": os.environ.get("BLOB_READ_WRITE_TOKEN", "").strip(),
        "BLOB_NAME": os.environ.get("REV_TRACKER_BLOB_NAME", "") or DEFAULT_BLOB_NAME,
        "DATA_PATH": Path(data_path) if data_path else BASE / "rev_tracker_data.json",
        "DEFAULT_TARGET": _env_float("DEFAULT_TARGET_REVENUE", DEFAULT_TARGET_REVENUE),
        "TIMEOUT": _env_float("BLOB_TIMEOUT", DEFAULT_TIMEOUT),
        "DEMO_MODE": os.environ.get("DEMO_MODE", "").lower() in ("1", "true", "yes"),
        "SECRET_KEY": os.environ.get("FLASK_SECRET", "rev-tracker-default-key-change-me"),
        "HOST": os.environ.get("HOST", "0.0.0.0"),
        "PORT": int(os.environ.get("PORT", 5000)),
    }


def make_store(config: dict):
    """Remote blob store when a token is configured, local JSON file otherwise."""
    if config.get("BLOB_TOKEN"):
        return BlobStore(
            config["BLOB_TOKEN"],
            blob_name=config.get("BLOB_NAME", DEFAULT_BLOB_NAME),
            default_target=config.get("DEFAULT_TARGET", DEFAULT_TARGET_REVENUE),
            timeout=config.get("TIMEOUT", DEFAULT_TIMEOUT),
        )
    return LocalStore(config["DATA_PATH"], default_target=config.get("DEFAULT_TARGET", DEFAULT_TARGET_REVENUE))


def create_app(config: dict = None, store=None) -> Flask:
    """Build the Flask app. `store` overrides the one derived from config (tests inject their own)."""
    from routes import bp, init_routes

    config = config if config is not None else load_app_config()
    store = store if store is not None else make_store(config)

    app = Flask(__name__)
    app.secret_key = config.get("SECRET_KEY", "rev-tracker-default-key-change-me")
    init_routes({
        "STORE": store,
        "DEMO_MODE": config.get("DEMO_MODE", False),
    })
    app.register_blueprint(bp)
    return app


def main():
    config = load_app_config()
    store = make_store(config)
    app = create_app(config, store)

    host, port = config["HOST"], config["PORT"]
    print(f"Revenue Tracker: http://{host}:{port}")
    print(f"Storage: {store!r}")
    if not config["BLOB_TOKEN"]:
        print("Note: BLOB_READ_WRITE_TOKEN not set - using the local data file.")
    if config["DEMO_MODE"]:
        print("[DEMO MODE] Write operations disabled.")
    print("Ctrl+C to stop.")
    app.run(host=host, port=port, debug=False, use_reloader=not config["DEMO_MODE"])


if __name__ == "__main__":
    main()
