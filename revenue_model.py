"""
Revenue document model: entries, settings, and the AppData envelope that is persisted as one JSON blob.
Documents are plain dicts so they go straight to/from JSON. Keys match the stored blob (targetRevenue, demoDay).
"""

import copy
import hashlib
import math
import re
import uuid
from datetime import date, datetime
from typing import Optional

DEFAULT_TARGET_REVENUE = 25000.0

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def new_entry_id() -> str:
    return uuid.uuid4().hex


def _stable_entry_id(index: int, amount: float, day: date, note: str) -> str:
    """Replacement id for a stored entry that lacks a usable one. Same document, same id on every load."""
    key = f"{index}|{day.isoformat()}|{amount!r}|{note}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:32]


def default_settings(default_target: float = DEFAULT_TARGET_REVENUE) -> dict:
    return {"targetRevenue": float(default_target), "demoDay": ""}


def default_app_data(default_target: float = DEFAULT_TARGET_REVENUE) -> dict:
    """Fresh document returned whenever the store has nothing usable."""
    return {"entries": [], "settings": default_settings(default_target)}


def parse_day(value) -> Optional[date]:
    """Parse a YYYY-MM-DD string as a naive calendar date. Returns None if unset or malformed.
    Only the first 10 chars are considered so '2026-03-23T00:00:00' style values still read as a day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()[:10]
    if not _DAY_RE.match(s):
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def _to_amount(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        s = value.strip().replace(",", "").replace("$", "")
        if not s:
            return None
        try:
            amount = float(s)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def validate_entry_input(data: dict) -> dict:
    """
    Validate a partial entry (amount, date, optional note) coming from a form, the CLI or JSON.
    Returns a clean dict without an id. Raises ValueError with a readable message.
    """
    if not isinstance(data, dict):
        raise ValueError("Entry must be an object")
    amount = _to_amount(data.get("amount"))
    if amount is None:
        raise ValueError("Amount must be a number")
    day = parse_day(data.get("date"))
    if day is None:
        raise ValueError("Date must be YYYY-MM-DD")
    clean = {"amount": amount, "date": day.isoformat()}
    note = data.get("note")
    if note is not None and str(note).strip():
        clean["note"] = str(note).strip()
    return clean


def new_entry(partial: dict) -> dict:
    """Validated entry with a freshly generated id."""
    entry = validate_entry_input(partial)
    return {"id": new_entry_id(), **entry}


def validate_settings_patch(data: dict) -> dict:
    """
    Validate a partial settings update. Unknown keys are ignored.
    targetRevenue must be a non-negative number; demoDay is YYYY-MM-DD or "" (unset).
    """
    if not isinstance(data, dict):
        raise ValueError("Settings must be an object")
    patch = {}
    if "targetRevenue" in data:
        target = _to_amount(data.get("targetRevenue"))
        if target is None or target < 0:
            raise ValueError("Target revenue must be a non-negative number")
        patch["targetRevenue"] = target
    if "demoDay" in data:
        raw = data.get("demoDay")
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            patch["demoDay"] = ""
        else:
            day = parse_day(raw)
            if day is None:
                raise ValueError("Demo day must be YYYY-MM-DD")
            patch["demoDay"] = day.isoformat()
    return patch


def normalize_settings(raw, default_target: float = DEFAULT_TARGET_REVENUE) -> dict:
    settings = default_settings(default_target)
    if not isinstance(raw, dict):
        return settings
    target = _to_amount(raw.get("targetRevenue"))
    if target is not None and target >= 0:
        settings["targetRevenue"] = target
    day = parse_day(raw.get("demoDay"))
    settings["demoDay"] = day.isoformat() if day else ""
    return settings


def normalize_entries(raw) -> list[dict]:
    """Drop unusable entries, fill missing ids and re-key duplicates so ids stay unique."""
    if not isinstance(raw, list):
        return []
    entries = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            continue
        amount = _to_amount(item.get("amount"))
        day = parse_day(item.get("date"))
        if amount is None or day is None:
            continue
        note = str(item.get("note") or "").strip()
        entry_id = str(item.get("id") or "").strip()
        if not entry_id or entry_id in seen:
            entry_id = _stable_entry_id(index, amount, day, note)
            while entry_id in seen:
                entry_id = hashlib.sha1(entry_id.encode("utf-8")).hexdigest()[:32]
        seen.add(entry_id)
        entry = {"id": entry_id, "amount": amount, "date": day.isoformat()}
        if note:
            entry["note"] = note
        entries.append(entry)
    return entries


def normalize_app_data(raw, default_target: float = DEFAULT_TARGET_REVENUE) -> dict:
    """Coerce whatever the store returned into a valid AppData document."""
    if not isinstance(raw, dict):
        return default_app_data(default_target)
    return {
        "entries": normalize_entries(raw.get("entries")),
        "settings": normalize_settings(raw.get("settings"), default_target),
    }


def clone(doc: dict) -> dict:
    return copy.deepcopy(doc)


def sorted_entries(entries: list[dict], newest_first: bool = False) -> list[dict]:
    """Entries ordered by calendar date; insertion order is only a tie-breaker."""
    return sorted(entries, key=lambda e: e.get("date", ""), reverse=newest_first)
