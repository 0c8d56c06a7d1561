"""
CSV import for revenue entries (Stripe payouts, invoice exports, hand-kept spreadsheets).
Columns are matched loosely by header name; rows become {date, amount, note} ready for revenue_manager.import_entries.
"""

import csv
import io
import re
from pathlib import Path
from typing import List, Optional

DATE_COLUMNS = ("date", "created", "paid_at", "posted", "posted_date", "payout_date")
AMOUNT_COLUMNS = ("amount", "net", "total", "revenue", "gross")
NOTE_COLUMNS = ("note", "description", "customer", "memo", "customer_email")


def _normalize_header(s: str) -> str:
    return s.strip().lower().replace(" ", "_").replace("-", "_")


def _find_column(row: list, *candidates: str) -> Optional[int]:
    """Return index of first column whose normalized name matches any candidate (exact preferred)."""
    partial_matches = []
    for i, cell in enumerate(row):
        n = _normalize_header(str(cell))
        if not n:
            continue
        for c in candidates:
            if n == c:
                return i
            if c in n:
                partial_matches.append(i)
                break
    return partial_matches[0] if partial_matches else None


def _safe_float(s) -> Optional[float]:
    """Parse money text: strips $ and thousands separators, (123.45) means negative."""
    if s is None:
        return None
    s = str(s).strip()
    if not s:
        return None
    negative = s.startswith("(") and s.endswith(")")
    s = s.replace(",", "").replace("$", "").replace("(", "").replace(")", "").strip()
    try:
        value = float(s)
    except ValueError:
        return None
    return -value if negative else value


def _normalize_date(date_str: str) -> str:
    """Try to normalize date string to YYYY-MM-DD format. Returns "" when unrecognized."""
    s = (date_str or "").strip()

    # YYYY-MM-DD, possibly followed by a time
    m = re.match(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$", s)
    if m:
        return f"{m.group(1)}-{m.group(2)}-{m.group(3)}"

    # MM/DD/YYYY or M/D/YYYY
    m = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", s)
    if m:
        return f"{m.group(3)}-{int(m.group(1)):02d}-{int(m.group(2)):02d}"

    # MM/DD/YY
    m = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{2})$", s)
    if m:
        year = int(m.group(3))
        year = year + 2000 if year < 50 else year + 1900
        return f"{year}-{int(m.group(1)):02d}-{int(m.group(2)):02d}"

    # MM-DD-YYYY
    m = re.match(r"^(\d{1,2})-(\d{1,2})-(\d{4})$", s)
    if m:
        return f"{m.group(3)}-{int(m.group(1)):02d}-{int(m.group(2)):02d}"

    return ""


def parse_revenue_csv(text: str) -> List[dict]:
    """
    Parse CSV text into [{"date", "amount", "note"?}, ...].
    Needs a date and an amount column; rows with an unreadable date or amount are skipped.
    """
    reader = csv.reader(io.StringIO(text))
    header = next(reader, None)
    if not header:
        return []
    idx_date = _find_column(header, *DATE_COLUMNS)
    idx_amount = _find_column(header, *AMOUNT_COLUMNS)
    idx_note = _find_column(header, *NOTE_COLUMNS)
    if idx_date is None or idx_amount is None:
        return []

    rows = []
    for row in reader:
        if len(row) <= max(idx_date, idx_amount):
            continue
        day = _normalize_date(row[idx_date])
        amount = _safe_float(row[idx_amount])
        if not day or amount is None:
            continue
        item = {"date": day, "amount": amount}
        if idx_note is not None and idx_note < len(row) and row[idx_note].strip():
            item["note"] = row[idx_note].strip()
        rows.append(item)
    return rows


def parse_revenue_csv_file(path: Path) -> List[dict]:
    with open(path, newline="", encoding="utf-8-sig", errors="replace") as f:
        return parse_revenue_csv(f.read())
