"""WSGI entry point for production deployment (gunicorn wsgi:app)."""

import sys
from pathlib import Path

BASE = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE))

from server import create_app, load_app_config, make_store

config = load_app_config()
store = make_store(config)
print(f"[Startup] Storage: {store!r}")

app = create_app(config, store)
