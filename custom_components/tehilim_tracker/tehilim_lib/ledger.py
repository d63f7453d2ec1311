# /config/custom_components/tehilim_tracker/tehilim_lib/ledger.py

"""
Progress ledger and the streak engine.

The ledger is the only persisted state. It changes through exactly one
transition, `complete_range`, which returns a fresh ledger and never mutates
the one it was given, so a caller can swap the result in atomically.

Streak rule:
  • First daily completion ever → 1
  • Yesterday (or today's clock went backwards) → +1
  • Longer gap → +1 only if every skipped day but one is exempt
    (Shabbos / Yom Tov / fast), otherwise the streak restarts at 1
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any

from .exceptions import MalformedPersistedState
from .models import CalendarDate, CycleScheme, ProtectedGap, RangeAssignment
from .schedules import CHAPTER_COUNT, monthly_assignment
from .specials import is_exempt

_LOGGER = logging.getLogger(__name__)

ExemptPredicate = Callable[[date], bool]


@dataclass
class ProgressLedger:
    current_streak: int = 0
    max_streak: int = 0
    total_units_completed: int = 0
    days_completed: int = 0
    cycles_completed: int = 0
    last_completion_date: date | None = None
    active_scheme: CycleScheme = CycleScheme.MONTHLY
    completed_units: set[int] = field(default_factory=set)
    completion_log: list[date] = field(default_factory=list)

    def copy(self) -> ProgressLedger:
        return replace(
            self,
            completed_units=set(self.completed_units),
            completion_log=list(self.completion_log),
        )

    def as_dict(self) -> dict[str, Any]:
        """JSON-safe form for the store."""
        return {
            "current_streak": self.current_streak,
            "max_streak": self.max_streak,
            "total_units_completed": self.total_units_completed,
            "days_completed": self.days_completed,
            "cycles_completed": self.cycles_completed,
            "last_completion_date": (
                self.last_completion_date.isoformat() if self.last_completion_date else None
            ),
            "active_scheme": str(self.active_scheme),
            "completed_units": sorted(self.completed_units),
            "completion_log": [d.isoformat() for d in self.completion_log],
        }

    @classmethod
    def from_dict(cls, data: Any) -> ProgressLedger:
        """
        Rebuild a ledger from stored data. Missing or unreadable fields fall back
        to their defaults one by one; readable fields are kept.
        """
        ledger = cls()
        if data is None:
            return ledger
        if not isinstance(data, dict):
            _LOGGER.warning("Stored ledger is not a mapping (%s); starting fresh", type(data).__name__)
            return ledger

        for key, parser in _FIELD_PARSERS.items():
            if key not in data:
                continue
            try:
                setattr(ledger, key, parser(key, data[key]))
            except MalformedPersistedState as err:
                _LOGGER.warning("%s; keeping default", err)

        ledger.max_streak = max(ledger.max_streak, ledger.current_streak)
        return ledger


# ─── Field parsers (raise MalformedPersistedState) ──────────────────────────

def _count(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedPersistedState(key, value)
    return value


def _day(key: str, value: Any) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as err:
        raise MalformedPersistedState(key, value) from err


def _scheme(key: str, value: Any) -> CycleScheme:
    try:
        scheme = CycleScheme(value)
    except ValueError as err:
        raise MalformedPersistedState(key, value) from err
    if not scheme.is_daily:
        raise MalformedPersistedState(key, value)
    return scheme


def _units(key: str, value: Any) -> set[int]:
    if not isinstance(value, (list, tuple, set)):
        raise MalformedPersistedState(key, value)
    units = set()
    for unit in value:
        if isinstance(unit, bool) or not isinstance(unit, int) or unit < 1:
            raise MalformedPersistedState(key, value)
        units.add(unit)
    return units


def _log(key: str, value: Any) -> list[date]:
    if not isinstance(value, list):
        raise MalformedPersistedState(key, value)
    return [_day(key, item) for item in value if item]


_FIELD_PARSERS: dict[str, Callable[[str, Any], Any]] = {
    "current_streak": _count,
    "max_streak": _count,
    "total_units_completed": _count,
    "days_completed": _count,
    "cycles_completed": _count,
    "last_completion_date": _day,
    "active_scheme": _scheme,
    "completed_units": _units,
    "completion_log": _log,
}


# ─── Streak engine ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CompletionOutcome:
    ledger: ProgressLedger
    assignment: RangeAssignment
    counted_for_streak: bool
    rolled_over: bool
    new_units: int


def _never(_day: date) -> bool:
    return False


def day_gap(today: date, last: date) -> int:
    return (today - last).days


def days_between(last: date, today: date) -> list[date]:
    """Every civil day strictly between last and today."""
    return [last + timedelta(days=i) for i in range(1, day_gap(today, last))]


def next_streak(ledger: ProgressLedger, today: date, is_exempt_day: ExemptPredicate = _never) -> int:
    last = ledger.last_completion_date
    if last is None:
        return 1

    gap = day_gap(today, last)
    if gap <= 1:
        return ledger.current_streak + 1

    protected = sum(1 for d in days_between(last, today) if is_exempt_day(d))
    if gap - protected <= 1:
        return ledger.current_streak + 1
    return 1


def complete_range(
    ledger: ProgressLedger,
    assignment: RangeAssignment,
    *,
    daily: bool,
    today: date,
    is_exempt_day: ExemptPredicate = _never,
) -> CompletionOutcome:
    """
    Mark `assignment` as read on `today`.

    Only daily completions move the streak, the day counter, the log and the
    last-completion date. Every completion adds its chapters to the cycle set
    and its full span to the lifetime counter, even when re-reading.
    """
    updated = ledger.copy()
    counted = daily and ledger.last_completion_date != today

    if counted:
        updated.current_streak = next_streak(ledger, today, is_exempt_day)
        updated.max_streak = max(updated.max_streak, updated.current_streak)
        updated.days_completed += 1
        if today not in updated.completion_log:
            updated.completion_log.append(today)

    before = len(updated.completed_units)
    updated.completed_units.update(assignment.units)
    new_units = len(updated.completed_units) - before

    # Size check, not a 1..150 check: members above 150 survive into the next cycle
    rolled_over = len(updated.completed_units) >= CHAPTER_COUNT
    if rolled_over:
        updated.cycles_completed += 1
        updated.completed_units = {u for u in updated.completed_units if u > CHAPTER_COUNT}
        _LOGGER.info("Cycle %d completed", updated.cycles_completed)

    updated.total_units_completed += assignment.span

    if daily:
        updated.last_completion_date = today

    return CompletionOutcome(
        ledger=updated,
        assignment=assignment,
        counted_for_streak=counted,
        rolled_over=rolled_over,
        new_units=new_units,
    )


# ─── Protected-gap detection ────────────────────────────────────────────────

# Days older than this cannot share a Hebrew month with today
GAP_SCAN_LIMIT = 30


def needs_gap_scan(ledger: ProgressLedger, today: date) -> bool:
    last = ledger.last_completion_date
    return last is not None and day_gap(today, last) > 1


def gap_scan_days(ledger: ProgressLedger, today: date) -> list[date]:
    """Skipped days worth resolving for the protected-gap scan, oldest first."""
    if not needs_gap_scan(ledger, today):
        return []
    earliest = today - timedelta(days=GAP_SCAN_LIMIT)
    return [d for d in days_between(ledger.last_completion_date, today) if d >= earliest]


def find_protected_gap(
    ledger: ProgressLedger,
    today_cal: CalendarDate,
    walked: Iterable[CalendarDate],
) -> ProtectedGap | None:
    """
    First exempt skipped day in today's Hebrew month whose monthly reading has
    not been marked (checked by its first chapter). Walk order decides ties.
    """
    for cal in walked:
        if not is_exempt(cal.gregorian, cal.observances):
            continue
        if (cal.year, cal.month_name) != (today_cal.year, today_cal.month_name):
            continue
        assignment = monthly_assignment(cal.day)
        if assignment.start in ledger.completed_units:
            continue
        _LOGGER.info("Protected missed day: %s (day %d)", cal.display_label, cal.day)
        return ProtectedGap(
            ordinal=cal.day,
            gregorian=cal.gregorian,
            assignment=assignment,
            year=cal.year,
            month_name=cal.month_name,
        )
    return None
