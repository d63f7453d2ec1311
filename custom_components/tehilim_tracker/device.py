# custom_components/tehilim_tracker/device.py
from __future__ import annotations

from collections.abc import Callable

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import Entity

from .const import DOMAIN, SIGNAL_UPDATED
from .tracker import TehilimTracker


class TehilimDevice(Entity):
    """Base mixin for ALL Tehilim entities: shared DeviceInfo + listener management.

    Entities never compute anything themselves; they read the tracker and
    re-render when it signals a change.
    """

    _attr_should_poll = False
    _attr_device_info = DeviceInfo(
        identifiers={(DOMAIN, "tehilim_main")},
        name="Tehilim Tracker",
        manufacturer="Tehilim Tracker",
        model="Daily Tehilim Reading",
        entry_type=DeviceEntryType.SERVICE,
    )

    def __init__(self, tracker: TehilimTracker, slug: str, platform: str) -> None:
        super().__init__()
        self._tracker = tracker
        self._listener_unsubs: list[Callable[[], None]] = []
        self._attr_unique_id = f"tehilim_{slug}"
        self.entity_id = f"{platform}.tehilim_{slug}"

    # --- Listener helpers (usable by any subclass) ---
    def _register_listener(self, unsub: Callable[[], None]) -> None:
        self._listener_unsubs.append(unsub)

    async def async_added_to_hass(self) -> None:
        await super().async_added_to_hass()
        self._register_listener(
            async_dispatcher_connect(self.hass, SIGNAL_UPDATED, self.async_write_ha_state)
        )

    async def async_will_remove_from_hass(self) -> None:
        """On entity removal, clean up any registered listeners."""
        for unsub in self._listener_unsubs:
            unsub()
        self._listener_unsubs.clear()
        await super().async_will_remove_from_hass()
