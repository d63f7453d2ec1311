# /config/custom_components/tehilim_tracker/tehilim_lib/models.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .helper import range_label


class CycleScheme(StrEnum):
    """Closed set of reading schemes. Stored values are stable keys."""

    MONTHLY = "month"      # 30 fixed assignments by Hebrew day-of-month
    WEEKLY = "week"        # 7 fixed assignments by weekday
    SINGLE = "single"      # explicit start/end chosen by the user
    SECTION = "book"       # one of the five named books
    CATCH_UP = "catchup"   # a missed monthly assignment read later

    @property
    def is_daily(self) -> bool:
        """Daily schemes drive the streak; every other scheme only marks chapters."""
        return self in (CycleScheme.MONTHLY, CycleScheme.WEEKLY)


DAILY_SCHEMES = [CycleScheme.MONTHLY, CycleScheme.WEEKLY]


@dataclass(frozen=True)
class CalendarDate:
    """A civil day as seen by the Hebrew calendar."""

    gregorian: date
    year: int
    month_name: str
    day: int
    display_label: str
    observances: tuple[str, ...] = ()
    is_fallback: bool = False


@dataclass(frozen=True)
class RangeAssignment:
    start: int
    end: int
    ordinal: int | None = None
    note: str | None = None

    @property
    def units(self) -> range:
        return range(self.start, self.end + 1)

    @property
    def span(self) -> int:
        return self.end - self.start + 1

    @property
    def label(self) -> str:
        return range_label(self.start, self.end)


@dataclass(frozen=True)
class ProtectedGap:
    """An exempt day earlier this month whose reading is still open."""

    ordinal: int
    gregorian: date
    assignment: RangeAssignment
    year: int
    month_name: str


@dataclass(frozen=True)
class PsalmUnit:
    unit_index: int
    lines: tuple[str, ...] = ()
    is_fallback: bool = False
