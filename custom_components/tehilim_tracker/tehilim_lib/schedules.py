# /config/custom_components/tehilim_tracker/tehilim_lib/schedules.py
"""
Reading tables and the date → assignment resolver.

  • Monthly: 30 fixed blocks keyed by the Hebrew day of the month
    (day 30 in a 29-day month is never reached; chapter 119 is split over days 25/26)
  • Weekly: 7 fixed blocks keyed by weekday, Sunday first
  • Single / Catch-up: whatever start/end the caller picked
  • Section: the five books of Tehilim
"""

from __future__ import annotations

from collections.abc import Callable

from .models import CalendarDate, CycleScheme, RangeAssignment
from .helper import sunday_weekday

CHAPTER_COUNT = 150

NOTE_FIRST_HALF = "first half"
NOTE_SECOND_HALF = "second half"

# Verse span shown for each half of chapter 119
NOTE_LABELS = {
    NOTE_FIRST_HALF: "פסוקים א-צו",
    NOTE_SECOND_HALF: "פסוקים צז-קעו",
}

# (start, end, note) per day of the Hebrew month
MONTHLY_SCHEDULE: list[tuple[int, int, str | None]] = [
    (1, 9, None),        # א - ט
    (10, 17, None),      # י - יז
    (18, 22, None),      # יח - כב
    (23, 28, None),      # כג - כח
    (29, 34, None),      # כט - לד
    (35, 38, None),      # לה - לח
    (39, 43, None),      # לט - מג
    (44, 48, None),      # מד - מח
    (49, 54, None),      # מט - נד
    (55, 59, None),      # נה - נט
    (60, 65, None),      # ס - סה
    (66, 68, None),      # סו - סח
    (69, 71, None),      # סט - עא
    (72, 76, None),      # עב - עו
    (77, 78, None),      # עז - עח
    (79, 82, None),      # עט - פב
    (83, 87, None),      # פג - פז
    (88, 89, None),      # פח - פט
    (90, 96, None),      # צ - צו
    (97, 103, None),     # צז - קג
    (104, 105, None),    # קד - קה
    (106, 107, None),    # קו - קז
    (108, 112, None),    # קח - קיב
    (113, 118, None),    # קיג - קיח
    (119, 119, NOTE_FIRST_HALF),
    (119, 119, NOTE_SECOND_HALF),
    (120, 134, None),    # קכ - קלד
    (135, 139, None),    # קלה - קלט
    (140, 144, None),    # קמ - קמד
    (145, 150, None),    # קמה - קנ
]

# Sunday (0) … Shabbos (6)
WEEKLY_SCHEDULE: list[tuple[int, int]] = [
    (1, 29),     # א - כט
    (30, 50),    # ל - נ
    (51, 72),    # נא - עב
    (73, 89),    # עג - פט
    (90, 106),   # צ - קו
    (107, 119),  # קז - קיט
    (120, 150),  # קכ - קנ
]

# (id, name, start, end)
BOOKS_SCHEDULE: list[tuple[int, str, int, int]] = [
    (1, "ספר ראשון", 1, 41),
    (2, "ספר שני", 42, 72),
    (3, "ספר שלישי", 73, 89),
    (4, "ספר רביעי", 90, 106),
    (5, "ספר חמישי", 107, 150),
]

MONTHLY_CYCLE_LENGTH = len(MONTHLY_SCHEDULE)


def monthly_assignment(ordinal: int) -> RangeAssignment:
    """Assignment for a 1-based day of the monthly cycle (wraps past 30)."""
    idx = (ordinal - 1) % MONTHLY_CYCLE_LENGTH
    start, end, note = MONTHLY_SCHEDULE[idx]
    return RangeAssignment(start, end, ordinal=idx + 1, note=note)


def weekly_assignment(weekday: int) -> RangeAssignment:
    """Assignment for a Sunday-first weekday index."""
    idx = weekday if 0 <= weekday < len(WEEKLY_SCHEDULE) else 0
    start, end = WEEKLY_SCHEDULE[idx]
    return RangeAssignment(start, end, ordinal=idx + 1)


def section_assignment(section: int) -> RangeAssignment:
    for book_id, _name, start, end in BOOKS_SCHEDULE:
        if book_id == section:
            return RangeAssignment(start, end, ordinal=book_id)
    raise ValueError(f"Unknown section {section}")


# ─── Resolver ────────────────────────────────────────────────────────────────

def _resolve_monthly(cal: CalendarDate, selection, section) -> RangeAssignment:
    return monthly_assignment(cal.day)


def _resolve_weekly(cal: CalendarDate, selection, section) -> RangeAssignment:
    return weekly_assignment(sunday_weekday(cal.gregorian))


def _resolve_selection(cal: CalendarDate, selection, section) -> RangeAssignment:
    if selection is None:
        raise ValueError("An explicit start/end is required for this scheme")
    start, end = selection
    return RangeAssignment(start, end)


def _resolve_section(cal: CalendarDate, selection, section) -> RangeAssignment:
    if section is None:
        raise ValueError("A section is required for the book scheme")
    return section_assignment(section)


_RESOLVERS: dict[CycleScheme, Callable[..., RangeAssignment]] = {
    CycleScheme.MONTHLY: _resolve_monthly,
    CycleScheme.WEEKLY: _resolve_weekly,
    CycleScheme.SINGLE: _resolve_selection,
    CycleScheme.CATCH_UP: _resolve_selection,
    CycleScheme.SECTION: _resolve_section,
}


def resolve_range(
    cal: CalendarDate,
    scheme: CycleScheme,
    selection: tuple[int, int] | None = None,
    section: int | None = None,
) -> RangeAssignment:
    """Return the assignment for `cal` under `scheme`.

    `selection` is the (start, end) pair for SINGLE and CATCH_UP; `section` the
    book number for SECTION. Daily schemes ignore both.
    """
    return _RESOLVERS[CycleScheme(scheme)](cal, selection, section)
