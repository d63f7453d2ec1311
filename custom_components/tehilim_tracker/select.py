# custom_components/tehilim_tracker/select.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from homeassistant.components.select import SelectEntity, SelectEntityDescription
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN
from .device import TehilimDevice
from .tehilim_lib.models import DAILY_SCHEMES
from .tracker import TehilimTracker

_LOGGER = logging.getLogger(__name__)

# Internal option values (stable keys, same as the stored ledger)
SCHEME_OPTIONS: Final[list[str]] = [str(scheme) for scheme in DAILY_SCHEMES]


@dataclass(frozen=True, kw_only=True)
class SchemeSelectDescription(SelectEntityDescription):
    """Description for the cycle scheme select."""
    slug: str


DESCRIPTION: Final = SchemeSelectDescription(
    key="cycle_scheme",
    translation_key="cycle_scheme",
    name="Tehilim Cycle Scheme",
    icon="mdi:calendar-sync",
    options=SCHEME_OPTIONS,
    slug="cycle_scheme",
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    tracker: TehilimTracker = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([CycleSchemeSelect(tracker, DESCRIPTION)])


class CycleSchemeSelect(TehilimDevice, SelectEntity):
    """Switches between the monthly and weekly daily cycles."""

    entity_description: SchemeSelectDescription

    def __init__(self, tracker: TehilimTracker, description: SchemeSelectDescription) -> None:
        super().__init__(tracker, description.slug, "select")
        self.entity_description = description

    @property
    def options(self) -> list[str]:
        return list(self.entity_description.options)

    @property
    def current_option(self) -> str | None:
        return str(self._tracker.ledger.active_scheme)

    async def async_select_option(self, option: str) -> None:
        """User changed the scheme; the tracker persists it and signals the refresh."""
        if option not in SCHEME_OPTIONS:
            _LOGGER.warning("Invalid cycle scheme: %s", option)
            return
        await self._tracker.async_set_scheme(option)
