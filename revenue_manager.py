"""
Revenue Manager - entry/settings operations over the stored document, dashboard data, Excel export and CLI.

  python revenue_manager.py summary                 # Total, target, progress, needed/week, countdown
  python revenue_manager.py add 1200 --note "ACME"  # Record revenue (date defaults to today)
  python revenue_manager.py set-demo-day 2026-03-23
  python revenue_manager.py import-csv payouts.csv
  python revenue_manager.py export revenue.xlsx

Every mutation is a whole-document read-modify-write: load, change in memory, save. There is no lock and no
retry; the last save wins. When a save fails the returned document is reverted so callers show what is stored.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from metrics import compute_metrics
from revenue_model import new_entry, sorted_entries, validate_settings_patch


def add_entry(store, partial: dict) -> tuple[dict, bool]:
    """Append a new entry with a fresh id. Raises ValueError for invalid input (before touching the store)."""
    entry = new_entry(partial)
    doc = store.load()
    doc["entries"].append(entry)
    saved = store.save(doc)
    if not saved:
        doc["entries"] = [e for e in doc["entries"] if e["id"] != entry["id"]]
    return doc, saved


def delete_entry(store, entry_id: str) -> tuple[dict, bool]:
    """Remove the entry with `entry_id`. Raises KeyError for an unknown id, without saving."""
    doc = store.load()
    entries = doc["entries"]
    index = next((i for i, e in enumerate(entries) if e["id"] == entry_id), None)
    if index is None:
        raise KeyError(entry_id)
    removed = entries.pop(index)
    saved = store.save(doc)
    if not saved:
        entries.insert(index, removed)
    return doc, saved


def update_settings(store, partial: dict) -> tuple[dict, bool]:
    """Shallow-merge `partial` into settings. Raises ValueError for invalid input."""
    patch = validate_settings_patch(partial)
    doc = store.load()
    previous = dict(doc["settings"])
    doc["settings"] = {**previous, **patch}
    saved = store.save(doc)
    if not saved:
        doc["settings"] = previous
    return doc, saved


def _entry_key(entry: dict) -> tuple:
    return (entry.get("date"), round(float(entry.get("amount", 0)), 2), (entry.get("note") or "").lower())


def import_entries(store, rows: list[dict]) -> tuple[dict, int, bool]:
    """
    Bulk add parsed rows in one load/save. Rows matching an existing entry on (date, amount, note) are skipped.
    Returns (doc, added, saved); on a failed save the returned doc has none of the new entries.
    """
    doc = store.load()
    existing = {_entry_key(e) for e in doc["entries"]}
    new_ids = set()
    for row in rows:
        try:
            entry = new_entry(row)
        except ValueError:
            continue
        key = _entry_key(entry)
        if key in existing:
            continue
        existing.add(key)
        doc["entries"].append(entry)
        new_ids.add(entry["id"])
    if not new_ids:
        return doc, 0, True
    saved = store.save(doc)
    if not saved:
        doc["entries"] = [e for e in doc["entries"] if e["id"] not in new_ids]
        return doc, 0, False
    return doc, len(new_ids), True


def get_dashboard_data(store, now: datetime = None) -> dict:
    """Load the document and compute every derived value for one render."""
    now = now or datetime.now()
    doc = store.load()
    return {
        "entries": doc["entries"],
        "settings": doc["settings"],
        "metrics": compute_metrics(doc["entries"], doc["settings"], now),
    }


_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill("solid", fgColor="16A34A")


def _write_header(ws, headers: list) -> None:
    ws.append(headers)
    for col in range(1, len(headers) + 1):
        cell = ws.cell(1, col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center")


def build_workbook(doc: dict, now: datetime = None) -> Workbook:
    """Entries, cumulative series and a summary sheet."""
    now = now or datetime.now()
    m = compute_metrics(doc["entries"], doc["settings"], now)
    wb = Workbook()

    ws = wb.active
    ws.title = "Entries"
    _write_header(ws, ["Date", "Amount", "Note", "ID"])
    for e in sorted_entries(doc["entries"]):
        ws.append([e["date"], round(e["amount"], 2), e.get("note", ""), e["id"]])
    for col, width in zip(range(1, 5), (12, 14, 40, 34)):
        ws.column_dimensions[get_column_letter(col)].width = width

    ws = wb.create_sheet("Cumulative")
    _write_header(ws, ["Date", "Added", "Cumulative"])
    for point in m["chart"]:
        ws.append([point["iso"], point["added"], point["revenue"]])

    ws = wb.create_sheet("Summary")
    _write_header(ws, ["Metric", "Value"])
    pct = m["progress_percent"]
    ws.append(["Total Revenue", round(m["total_revenue"], 2)])
    ws.append(["Target", round(m["target_revenue"], 2)])
    ws.append(["Remaining", round(m["remaining"], 2)])
    ws.append(["Progress %", round(pct, 1) if pct is not None else None])
    ws.append(["Demo Day", m["demo_day"]])
    ws.append(["Days Until Demo", m["days_until_demo"]])
    ws.append(["Needed This Week", round(m["weekly_target"], 2)])
    ws.append(["Exported At", now.strftime("%Y-%m-%d %H:%M")])
    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 16
    return wb


def export_workbook(doc: dict, dest, now: datetime = None) -> None:
    """Save the workbook to a path or a binary file object."""
    build_workbook(doc, now).save(dest)


def format_summary(data: dict) -> str:
    m = data["metrics"]
    pct = m["progress_percent"]
    cd = m["countdown"]
    lines = [
        f"Revenue:        ${m['total_revenue']:,.2f}  ({m['entry_count']} entries)",
        f"Target:         ${m['target_revenue']:,.2f}",
        f"Remaining:      ${m['remaining']:,.2f}",
        f"Progress:       {pct:.1f}%" if pct is not None else "Progress:       -",
        f"Needed/Week:    ${m['weekly_target']:,.0f}",
    ]
    if cd is not None:
        lines.append(
            f"Demo Day:       {m['demo_day']}  "
            f"({cd['days']}d {cd['hours']:02d}h {cd['minutes']:02d}m {cd['seconds']:02d}s)"
        )
    else:
        lines.append("Demo Day:       -")
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Revenue Tracker")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("summary", help="Show total, target, pacing and countdown")
    sub.add_parser("list", help="List entries (newest first)")
    p_add = sub.add_parser("add", help="Record a revenue entry")
    p_add.add_argument("amount")
    p_add.add_argument("--date", default=datetime.now().strftime("%Y-%m-%d"), help="YYYY-MM-DD (default today)")
    p_add.add_argument("--note", default="")
    p_del = sub.add_parser("delete", help="Delete an entry by id")
    p_del.add_argument("entry_id")
    p_target = sub.add_parser("set-target", help="Set target revenue")
    p_target.add_argument("target")
    p_demo = sub.add_parser("set-demo-day", help='Set demo day (YYYY-MM-DD, or "" to clear)')
    p_demo.add_argument("day")
    p_imp = sub.add_parser("import-csv", help="Import entries from a CSV export")
    p_imp.add_argument("file", type=Path)
    p_exp = sub.add_parser("export", help="Export entries and summary to .xlsx")
    p_exp.add_argument("file", type=Path)
    args = parser.parse_args(argv)

    from server import load_app_config, make_store
    store = make_store(load_app_config())

    try:
        if args.command == "summary":
            print(format_summary(get_dashboard_data(store)))
            return 0
        if args.command == "list":
            doc = store.load()
            for e in sorted_entries(doc["entries"], newest_first=True):
                print(f"{e['date']}  ${e['amount']:>12,.2f}  {e['id']}  {e.get('note', '')}")
            return 0
        if args.command == "export":
            export_workbook(store.load(), args.file)
            print(f"Exported to {args.file}")
            return 0
        if args.command == "import-csv":
            from csv_import import parse_revenue_csv_file
            rows = parse_revenue_csv_file(args.file)
            _, added, saved = import_entries(store, rows)
            print(f"Imported {added} new entries ({len(rows)} parsed, {len(rows) - added} skipped).")
            return 0 if saved else 1

        if args.command == "add":
            _, saved = add_entry(store, {"amount": args.amount, "date": args.date, "note": args.note})
        elif args.command == "delete":
            try:
                _, saved = delete_entry(store, args.entry_id)
            except KeyError:
                print(f"Error: no entry with id {args.entry_id}")
                return 1
        elif args.command == "set-target":
            _, saved = update_settings(store, {"targetRevenue": args.target})
        else:
            _, saved = update_settings(store, {"demoDay": args.day})
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    print("Saved." if saved else "Save failed - nothing was changed.")
    return 0 if saved else 1


if __name__ == "__main__":
    sys.exit(main())
