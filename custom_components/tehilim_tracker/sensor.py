#/config/custom_components/tehilim_tracker/sensor.py
from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .device import TehilimDevice
from .tehilim_lib.schedules import NOTE_LABELS
from .tracker import TehilimTracker


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities,
) -> None:
    """Set up the Tehilim sensors."""
    tracker: TehilimTracker = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([
        TehilimTodaySensor(tracker),
        TehilimStreakSensor(tracker),
        TehilimProgressSensor(tracker),
        TehilimProtectedGapSensor(tracker),
        TehilimMonthViewSensor(tracker),
    ])


class TehilimTodaySensor(TehilimDevice, SensorEntity):
    """Today's reading under the active scheme, e.g. "א - ט"."""

    _attr_name = "Tehilim Today"
    _attr_icon = "mdi:book-open-variant"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "today", "sensor")

    @property
    def native_value(self) -> str | None:
        assignment = self._tracker.today_assignment
        if assignment is None:
            return None
        label = assignment.label
        if assignment.note:
            label = f"{label} ({NOTE_LABELS.get(assignment.note, assignment.note)})"
        return label

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        assignment = self._tracker.today_assignment
        cal = self._tracker.today_cal
        if assignment is None or cal is None:
            return {}
        return {
            "start": assignment.start,
            "end": assignment.end,
            "ordinal": assignment.ordinal,
            "note": assignment.note,
            "scheme": str(self._tracker.ledger.active_scheme),
            "hebrew_date": cal.display_label,
            "observances": list(cal.observances),
            "offline_calendar": cal.is_fallback,
        }


class TehilimStreakSensor(TehilimDevice, SensorEntity):
    _attr_name = "Tehilim Streak"
    _attr_icon = "mdi:fire"
    _attr_native_unit_of_measurement = "days"
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "streak", "sensor")

    @property
    def native_value(self) -> int:
        return self._tracker.ledger.current_streak

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        ledger = self._tracker.ledger
        last = ledger.last_completion_date
        return {
            "max_streak": ledger.max_streak,
            "last_completion_date": last.isoformat() if last else None,
            "days_completed": ledger.days_completed,
            "completed_today": self._tracker.completed_today,
        }


class TehilimProgressSensor(TehilimDevice, SensorEntity):
    """Distinct chapters read in the current cycle."""

    _attr_name = "Tehilim Progress"
    _attr_icon = "mdi:progress-check"
    _attr_native_unit_of_measurement = "chapters"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "progress", "sensor")

    @property
    def native_value(self) -> int:
        return self._tracker.progress_snapshot()["completed_units"]

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        snapshot = self._tracker.progress_snapshot()
        snapshot.pop("completed_units")
        return snapshot


class TehilimProtectedGapSensor(TehilimDevice, SensorEntity):
    """Day of this month that still needs catching up, if any."""

    _attr_name = "Tehilim Protected Gap"
    _attr_icon = "mdi:calendar-alert"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "protected_gap", "sensor")

    @property
    def native_value(self) -> int | None:
        gap = self._tracker.protected_gap
        return gap.ordinal if gap else None

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        gap = self._tracker.protected_gap
        if gap is None:
            return {}
        return {
            "date": gap.gregorian.isoformat(),
            "start": gap.assignment.start,
            "end": gap.assignment.end,
            "label": gap.assignment.label,
        }


class TehilimMonthViewSensor(TehilimDevice, SensorEntity):
    """The Hebrew month the calendar grid is showing, with a status per day."""

    _attr_name = "Tehilim Month View"
    _attr_icon = "mdi:calendar-month"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "month_view", "sensor")

    @property
    def native_value(self) -> str | None:
        view = self._tracker.month_view()
        if not view:
            return None
        return f"{view['month']} {view['year_label']}"

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return self._tracker.month_view()
