# /config/custom_components/tehilim_tracker/tehilim_lib/progress.py
"""Read-only views over the ledger: month grid statuses and per-book progress."""

from __future__ import annotations

from typing import Any

from .ledger import ProgressLedger
from .models import CalendarDate
from .schedules import BOOKS_SCHEDULE, CHAPTER_COUNT, monthly_assignment

STATUS_DONE = "done"
STATUS_MISSED = "missed"
STATUS_TODAY = "today"
STATUS_PENDING = "pending"


def day_status(
    ledger: ProgressLedger,
    today_cal: CalendarDate,
    view_year: int,
    view_month: str,
    day: int,
    completed_today: bool,
) -> str:
    """Status of one day of a viewed month. Only the current month has history."""
    if (view_year, view_month) != (today_cal.year, today_cal.month_name):
        return STATUS_PENDING
    if day < today_cal.day:
        units = monthly_assignment(day).units
        if all(unit in ledger.completed_units for unit in units):
            return STATUS_DONE
        return STATUS_MISSED
    if day == today_cal.day:
        return STATUS_DONE if completed_today else STATUS_TODAY
    return STATUS_PENDING


def month_statuses(
    ledger: ProgressLedger,
    today_cal: CalendarDate,
    view_year: int,
    view_month: str,
    length: int,
    completed_today: bool,
) -> dict[int, str]:
    return {
        day: day_status(ledger, today_cal, view_year, view_month, day, completed_today)
        for day in range(1, length + 1)
    }


def section_progress(ledger: ProgressLedger) -> list[dict[str, Any]]:
    progress = []
    for book_id, name, start, end in BOOKS_SCHEDULE:
        total = end - start + 1
        read = sum(1 for unit in ledger.completed_units if start <= unit <= end)
        progress.append({"section": book_id, "name": name, "read": read, "total": total})
    return progress


def cycle_percent(ledger: ProgressLedger) -> float:
    in_range = sum(1 for unit in ledger.completed_units if unit <= CHAPTER_COUNT)
    return round(100 * in_range / CHAPTER_COUNT, 1)
