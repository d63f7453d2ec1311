from datetime import date

import pytest

from custom_components.tehilim_tracker.tehilim_lib.models import CalendarDate, CycleScheme
from custom_components.tehilim_tracker.tehilim_lib.schedules import (
    BOOKS_SCHEDULE,
    CHAPTER_COUNT,
    MONTHLY_SCHEDULE,
    NOTE_FIRST_HALF,
    NOTE_SECOND_HALF,
    WEEKLY_SCHEDULE,
    monthly_assignment,
    resolve_range,
    section_assignment,
    weekly_assignment,
)


def _cal(gdate: date, day: int) -> CalendarDate:
    return CalendarDate(gregorian=gdate, year=5785, month_name="תמוז", day=day, display_label="")


def _covered(entries) -> list[int]:
    chapters: list[int] = []
    for start, end in entries:
        chapters.extend(range(start, end + 1))
    return chapters


def test_monthly_table_tiles_all_chapters_once():
    # Day 26 repeats chapter 119 (second half)
    entries = [(s, e) for i, (s, e, _n) in enumerate(MONTHLY_SCHEDULE) if i != 25]
    chapters = _covered(entries)
    assert len(MONTHLY_SCHEDULE) == 30
    assert sorted(chapters) == list(range(1, CHAPTER_COUNT + 1))


def test_weekly_table_tiles_all_chapters_once():
    chapters = _covered(WEEKLY_SCHEDULE)
    assert len(WEEKLY_SCHEDULE) == 7
    assert sorted(chapters) == list(range(1, CHAPTER_COUNT + 1))


def test_books_cover_all_chapters():
    chapters = _covered([(s, e) for _id, _name, s, e in BOOKS_SCHEDULE])
    assert sorted(chapters) == list(range(1, CHAPTER_COUNT + 1))


def test_chapter_119_is_split_over_days_25_and_26():
    first = monthly_assignment(25)
    second = monthly_assignment(26)
    assert (first.start, first.end, first.note) == (119, 119, NOTE_FIRST_HALF)
    assert (second.start, second.end, second.note) == (119, 119, NOTE_SECOND_HALF)


def test_monthly_wraps_past_thirty():
    assert monthly_assignment(31) == monthly_assignment(1)
    assert monthly_assignment(1).ordinal == 1


def test_weekly_first_and_last_day():
    assert (weekly_assignment(0).start, weekly_assignment(0).end) == (1, 29)
    assert (weekly_assignment(6).start, weekly_assignment(6).end) == (120, 150)


def test_weekly_out_of_range_falls_back_to_first_entry():
    assert weekly_assignment(9) == weekly_assignment(0)


def test_resolve_monthly_uses_hebrew_day():
    assignment = resolve_range(_cal(date(2025, 7, 6), 25), CycleScheme.MONTHLY)
    assert (assignment.start, assignment.end, assignment.ordinal) == (119, 119, 25)


def test_resolve_weekly_uses_gregorian_weekday():
    sunday = _cal(date(2025, 7, 6), 10)
    shabbos = _cal(date(2025, 7, 12), 16)
    assert resolve_range(sunday, CycleScheme.WEEKLY).start == 1
    assert resolve_range(shabbos, CycleScheme.WEEKLY).end == 150


def test_resolve_single_returns_selection_without_ordinal():
    assignment = resolve_range(_cal(date(2025, 7, 6), 10), CycleScheme.SINGLE, selection=(20, 23))
    assert (assignment.start, assignment.end, assignment.ordinal) == (20, 23, None)


def test_resolve_catch_up_requires_selection():
    with pytest.raises(ValueError):
        resolve_range(_cal(date(2025, 7, 6), 10), CycleScheme.CATCH_UP)


def test_resolve_section():
    assignment = resolve_range(_cal(date(2025, 7, 6), 10), CycleScheme.SECTION, section=5)
    assert (assignment.start, assignment.end) == (107, 150)
    with pytest.raises(ValueError):
        section_assignment(6)
