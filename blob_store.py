"""
Persistence for the revenue document.
BlobStore keeps the whole AppData document as one public JSON blob (Vercel Blob).
LocalStore is the fallback when no blob token is configured: one JSON file holding two fixed keys.
Neither backend raises to callers: load() degrades to the default document, save() returns False.
"""

import json
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Optional

import requests

from revenue_model import DEFAULT_TARGET_REVENUE, default_app_data, normalize_app_data

BLOB_API_URL = "https://blob.vercel-storage.com"
DEFAULT_BLOB_NAME = "rev-tracker-data.json"
DEFAULT_TIMEOUT = 15

# Keys used by the local fallback variant
ENTRIES_KEY = "rev-tracker-entries"
SETTINGS_KEY = "rev-tracker-settings"

_TOKEN_RE = re.compile(r"^vercel_blob_rw_([^_]+)_")


def blob_base_url(token: Optional[str]) -> Optional[str]:
    """Public base URL derived from a read-write token (vercel_blob_rw_{storeId}_{rest})."""
    if not token:
        return None
    m = _TOKEN_RE.match(token.strip())
    if not m:
        return None
    return f"https://{m.group(1).lower()}.public.blob.vercel-storage.com"


class BlobStore:
    """Whole-document reads/writes against a single named blob. Last write wins."""

    def __init__(self, token: str, blob_name: str = DEFAULT_BLOB_NAME,
                 default_target: float = DEFAULT_TARGET_REVENUE, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.token = (token or "").strip()
        self.blob_name = blob_name
        self.default_target = default_target
        self.timeout = timeout
        self.session = session or requests.Session()

    def __repr__(self):
        return f"BlobStore({self.blob_name!r})"

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}

    def _lookup_url(self) -> Optional[str]:
        """Find the blob URL through the list API when it can't be derived from the token."""
        r = self.session.get(
            BLOB_API_URL,
            params={"prefix": self.blob_name, "limit": 10},
            headers=self._auth_headers(),
            timeout=self.timeout,
        )
        r.raise_for_status()
        for blob in r.json().get("blobs", []):
            if blob.get("pathname") == self.blob_name:
                return blob.get("url")
        return None

    def blob_url(self) -> Optional[str]:
        base = blob_base_url(self.token)
        if base:
            return f"{base}/{self.blob_name}"
        return self._lookup_url()

    def load(self) -> dict:
        """Fetch the current document, bypassing any cache. Defaults on any failure."""
        try:
            url = self.blob_url()
            if not url:
                return default_app_data(self.default_target)
            r = self.session.get(
                url,
                params={"t": int(time.time() * 1000)},
                headers={"Cache-Control": "no-cache, no-store", "Pragma": "no-cache"},
                timeout=self.timeout,
            )
            if r.status_code == 404:
                return default_app_data(self.default_target)
            r.raise_for_status()
            return normalize_app_data(r.json(), self.default_target)
        except (requests.RequestException, ValueError) as e:
            print(f"[Store] Load failed: {e}")
            return default_app_data(self.default_target)

    def save(self, doc: dict) -> bool:
        """Overwrite the blob with the full document. No version check."""
        try:
            r = self.session.put(
                f"{BLOB_API_URL}/{self.blob_name}",
                data=json.dumps(doc),
                headers={
                    **self._auth_headers(),
                    "x-add-random-suffix": "0",
                    "x-allow-overwrite": "1",
                    "x-content-type": "application/json",
                    "x-cache-control-max-age": "0",
                },
                timeout=self.timeout,
            )
            r.raise_for_status()
            return True
        except (requests.RequestException, TypeError, ValueError) as e:
            print(f"[Store] Save failed: {e}")
            return False


class LocalStore:
    """Fallback store: entries and settings under two fixed keys in one JSON file."""

    def __init__(self, path: Path, default_target: float = DEFAULT_TARGET_REVENUE):
        self.path = Path(path)
        self.default_target = default_target

    def __repr__(self):
        return f"LocalStore({str(self.path)!r})"

    def load(self) -> dict:
        if not self.path.exists():
            return default_app_data(self.default_target)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            print(f"[Store] Load failed: {e}")
            return default_app_data(self.default_target)
        if not isinstance(raw, dict):
            return default_app_data(self.default_target)
        return normalize_app_data(
            {"entries": raw.get(ENTRIES_KEY), "settings": raw.get(SETTINGS_KEY)},
            self.default_target,
        )

    def save(self, doc: dict) -> bool:
        """Atomic write: temp file in the same directory, then rename over the target."""
        payload = {ENTRIES_KEY: doc.get("entries", []), SETTINGS_KEY: doc.get("settings", {})}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".json.tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                Path(tmp_path).replace(self.path)
            except Exception:
                Path(tmp_path).unlink(missing_ok=True)
                raise
            return True
        except (OSError, TypeError, ValueError) as e:
            print(f"[Store] Save failed: {e}")
            return False
