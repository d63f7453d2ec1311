#/config/custom_components/tehilim_tracker/binary_sensor.py
from __future__ import annotations

from homeassistant.components.binary_sensor import BinarySensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN
from .device import TehilimDevice
from .tracker import TehilimTracker


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities,
) -> None:
    tracker: TehilimTracker = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([
        TehilimCompletedTodaySensor(tracker),
        TehilimExemptTodaySensor(tracker),
    ])


class TehilimCompletedTodaySensor(TehilimDevice, BinarySensorEntity):
    """ON once today's daily reading is marked."""

    _attr_name = "Tehilim Completed Today"
    _attr_icon = "mdi:check-decagram"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "completed_today", "binary_sensor")

    @property
    def is_on(self) -> bool:
        return self._tracker.completed_today


class TehilimExemptTodaySensor(TehilimDevice, BinarySensorEntity):
    """ON on Shabbos, Yom Tov and fast days, when skipping keeps the streak."""

    _attr_name = "Tehilim Exempt Today"
    _attr_icon = "mdi:shield-check"

    def __init__(self, tracker: TehilimTracker) -> None:
        super().__init__(tracker, "exempt_today", "binary_sensor")

    @property
    def is_on(self) -> bool:
        return self._tracker.exempt_today

    @property
    def extra_state_attributes(self) -> dict[str, list[str]]:
        cal = self._tracker.today_cal
        return {"observances": list(cal.observances) if cal else []}
