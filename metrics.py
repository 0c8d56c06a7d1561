"""
Derived dashboard metrics: totals, cumulative chart series, weekly pacing, progress and demo-day countdown.
Everything here is pure given (entries, settings, now). `now` is a naive local datetime; entry dates and
demoDay are naive calendar days, never shifted through UTC.
"""

import math
from datetime import date, datetime, timedelta
from typing import Optional

from revenue_model import parse_day


def total_revenue(entries: list[dict]) -> float:
    return math.fsum(float(e.get("amount", 0) or 0) for e in entries)


def _chart_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def chart_series(entries: list[dict]) -> list[dict]:
    """
    Cumulative revenue per calendar day, ascending.
    Entries sharing a date are summed into one point; `added` is that day's own increment.
    """
    by_day: dict[date, float] = {}
    for e in entries:
        day = parse_day(e.get("date"))
        if day is None:
            continue
        by_day[day] = by_day.get(day, 0.0) + float(e.get("amount", 0) or 0)

    series = []
    cumulative = 0.0
    for day in sorted(by_day):
        cumulative += by_day[day]
        series.append({
            "date": _chart_label(day),
            "iso": day.isoformat(),
            "revenue": round(cumulative, 2),
            "added": round(by_day[day], 2),
        })
    return series


def _demo_day(settings: dict) -> Optional[date]:
    return parse_day((settings or {}).get("demoDay"))


def _target(settings: dict) -> float:
    try:
        return float((settings or {}).get("targetRevenue") or 0)
    except (TypeError, ValueError):
        return 0.0


def days_until_demo(settings: dict, now: datetime) -> Optional[int]:
    """Calendar days from today to demo day; never negative. None when no demo day is set."""
    demo = _demo_day(settings)
    if demo is None:
        return None
    return max(0, (demo - now.date()).days)


def week_start(day: date) -> date:
    """Monday of the calendar week containing `day`."""
    return day - timedelta(days=day.weekday())


def weeks_remaining(settings: dict, now: datetime) -> Optional[int]:
    """Full Monday-start weeks from this week's Monday through demo day (at least 1)."""
    demo = _demo_day(settings)
    if demo is None:
        return None
    return max(1, (demo - week_start(now.date())).days // 7)


def remaining_to_target(entries: list[dict], settings: dict) -> float:
    return max(0.0, _target(settings) - total_revenue(entries))


def weekly_target(entries: list[dict], settings: dict, now: datetime) -> float:
    """Amount to add this calendar week to hit the target by demo day. 0 if unset or already met."""
    weeks = weeks_remaining(settings, now)
    remaining = _target(settings) - total_revenue(entries)
    if weeks is None or remaining <= 0:
        return 0.0
    return remaining / weeks


def progress_percent(entries: list[dict], settings: dict) -> Optional[float]:
    """Unclamped percentage of target reached; None when the target is zero."""
    target = _target(settings)
    if target <= 0:
        return None
    return total_revenue(entries) / target * 100


def progress_bar_width(percent: Optional[float]) -> float:
    if percent is None:
        return 0.0
    return min(100.0, max(0.0, percent))


def countdown(settings: dict, now: datetime) -> Optional[dict]:
    """Wall-clock time left until the start of demo day, floored at zero."""
    demo = _demo_day(settings)
    if demo is None:
        return None
    target = datetime(demo.year, demo.month, demo.day)
    total_seconds = max(0, int((target - now).total_seconds()))
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return {
        "days": days,
        "hours": hours,
        "minutes": minutes,
        "seconds": seconds,
        "total_seconds": total_seconds,
    }


def compute_metrics(entries: list[dict], settings: dict, now: datetime) -> dict:
    """All derived values for one render."""
    pct = progress_percent(entries, settings)
    demo = _demo_day(settings)
    return {
        "total_revenue": total_revenue(entries),
        "target_revenue": _target(settings),
        "remaining": remaining_to_target(entries, settings),
        "chart": chart_series(entries),
        "demo_day": demo.isoformat() if demo else None,
        "days_until_demo": days_until_demo(settings, now),
        "weeks_remaining": weeks_remaining(settings, now),
        "weekly_target": weekly_target(entries, settings, now),
        "progress_percent": pct,
        "progress_bar_width": progress_bar_width(pct),
        "countdown": countdown(settings, now),
        "entry_count": len(entries),
        "computed_at": now.isoformat(timespec="seconds"),
    }
