from datetime import date

from custom_components.tehilim_tracker.tehilim_lib.ledger import ProgressLedger
from custom_components.tehilim_tracker.tehilim_lib.models import CalendarDate
from custom_components.tehilim_tracker.tehilim_lib.progress import (
    STATUS_DONE,
    STATUS_MISSED,
    STATUS_PENDING,
    STATUS_TODAY,
    cycle_percent,
    month_statuses,
    section_progress,
)

TODAY = CalendarDate(
    gregorian=date(2025, 6, 30), year=5785, month_name="תמוז", day=4, display_label=""
)


def test_month_statuses_for_current_month():
    ledger = ProgressLedger(completed_units=set(range(1, 10)) | set(range(23, 29)))
    statuses = month_statuses(ledger, TODAY, 5785, "תמוז", 29, completed_today=False)
    assert statuses[1] == STATUS_DONE
    assert statuses[2] == STATUS_MISSED
    assert statuses[3] == STATUS_MISSED
    assert statuses[4] == STATUS_TODAY
    assert statuses[5] == STATUS_PENDING
    assert len(statuses) == 29


def test_today_is_done_once_completed():
    statuses = month_statuses(ProgressLedger(), TODAY, 5785, "תמוז", 29, completed_today=True)
    assert statuses[4] == STATUS_DONE


def test_other_months_have_no_history():
    ledger = ProgressLedger(completed_units=set(range(1, 151)))
    statuses = month_statuses(ledger, TODAY, 5785, "סיון", 30, completed_today=True)
    assert set(statuses.values()) == {STATUS_PENDING}


def test_partially_read_day_counts_as_missed():
    ledger = ProgressLedger(completed_units={1, 2, 3})
    statuses = month_statuses(ledger, TODAY, 5785, "תמוז", 29, completed_today=False)
    assert statuses[1] == STATUS_MISSED


def test_section_progress():
    ledger = ProgressLedger(completed_units=set(range(1, 42)) | {100})
    progress = {p["section"]: p for p in section_progress(ledger)}
    assert progress[1]["read"] == progress[1]["total"] == 41
    assert progress[4]["read"] == 1
    assert progress[5] == {"section": 5, "name": "ספר חמישי", "read": 0, "total": 44}


def test_cycle_percent():
    assert cycle_percent(ProgressLedger(completed_units=set(range(1, 76)))) == 50.0
    assert cycle_percent(ProgressLedger()) == 0.0
