from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_call_later, async_track_time_change
from homeassistant.helpers.storage import Store

from .const import (
    ATTR_DAY,
    ATTR_DIRECTION,
    ATTR_END,
    ATTR_RESET,
    ATTR_SECTION,
    ATTR_START,
    DOMAIN,
    SERVICE_CATCH_UP,
    SERVICE_COMPLETE_CHAPTER,
    SERVICE_COMPLETE_DAILY,
    SERVICE_COMPLETE_SECTION,
    SERVICE_FETCH_CHAPTERS,
    SERVICE_NAVIGATE_MONTH,
    STORAGE_KEY,
    STORAGE_VERSION,
)
from .config_flow import (
    CONF_CYCLE_TYPE,
    CONF_IS_IN_ISRAEL,
    CONF_ORACLE_TIMEOUT,
    CONF_USE_ONLINE_CALENDAR,
    DEFAULT_CYCLE_TYPE,
    DEFAULT_IS_IN_ISRAEL,
    DEFAULT_ORACLE_TIMEOUT,
    DEFAULT_USE_ONLINE_CALENDAR,
)
from .tehilim_lib.content import ContentProvider
from .tehilim_lib.exceptions import InvalidSelection
from .tehilim_lib.oracle import CalendarOracle
from .tehilim_lib.schedules import BOOKS_SCHEDULE, CHAPTER_COUNT
from .tracker import TehilimTracker

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR, Platform.BINARY_SENSOR, Platform.SELECT]

_CHAPTER = vol.All(vol.Coerce(int), vol.Range(min=1, max=CHAPTER_COUNT))

COMPLETE_CHAPTER_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_START): _CHAPTER,
        vol.Optional(ATTR_END): _CHAPTER,
    }
)
COMPLETE_SECTION_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_SECTION): vol.All(
            vol.Coerce(int), vol.In([book_id for book_id, *_ in BOOKS_SCHEDULE])
        ),
    }
)
CATCH_UP_SCHEMA = vol.Schema(
    {vol.Optional(ATTR_DAY): vol.All(vol.Coerce(int), vol.Range(min=1, max=30))}
)
NAVIGATE_MONTH_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_DIRECTION, default=1): vol.All(vol.Coerce(int), vol.In([-1, 1])),
        vol.Optional(ATTR_RESET, default=False): cv.boolean,
    }
)
FETCH_CHAPTERS_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_START): _CHAPTER,
        vol.Required(ATTR_END): _CHAPTER,
    }
)


def _entry_options(entry: ConfigEntry) -> dict:
    initial = entry.data or {}
    opts = entry.options or {}

    def get(k, default):
        return opts.get(k, initial.get(k, default))

    return {
        CONF_IS_IN_ISRAEL: get(CONF_IS_IN_ISRAEL, DEFAULT_IS_IN_ISRAEL),
        CONF_CYCLE_TYPE: get(CONF_CYCLE_TYPE, DEFAULT_CYCLE_TYPE),
        CONF_USE_ONLINE_CALENDAR: get(CONF_USE_ONLINE_CALENDAR, DEFAULT_USE_ONLINE_CALENDAR),
        CONF_ORACLE_TIMEOUT: get(CONF_ORACLE_TIMEOUT, DEFAULT_ORACLE_TIMEOUT),
    }


# ───────────────────────────────────────────────────────────────────────────────
# Home Assistant integration lifecycle
# ───────────────────────────────────────────────────────────────────────────────

async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Tehilim Tracker from a config entry."""
    entry.async_on_unload(entry.add_update_listener(_async_update_options))

    cfg = _entry_options(entry)
    session = async_get_clientsession(hass)
    online = bool(cfg[CONF_USE_ONLINE_CALENDAR])
    timeout = float(cfg[CONF_ORACLE_TIMEOUT])

    tracker = TehilimTracker(
        hass,
        Store(hass, STORAGE_VERSION, STORAGE_KEY),
        CalendarOracle(
            session,
            israel=bool(cfg[CONF_IS_IN_ISRAEL]),
            online=online,
            timeout=timeout,
        ),
        ContentProvider(session, online=online, timeout=timeout),
        default_scheme=cfg[CONF_CYCLE_TYPE],
    )
    await tracker.async_load()

    hass.data.setdefault(DOMAIN, {})
    hass.data[DOMAIN][entry.entry_id] = tracker

    # The scan only reads the ledger; entities show its result once it lands
    entry.async_create_background_task(
        hass, tracker.async_scan_protected_gap(), f"{DOMAIN}_protected_gap_scan"
    )

    async def _handle_midnight(now) -> None:
        await tracker.async_refresh_today()

    entry.async_on_unload(
        async_track_time_change(hass, _handle_midnight, hour=0, minute=0, second=1)
    )

    _async_register_services(hass, tracker)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


def _async_register_services(hass: HomeAssistant, tracker: TehilimTracker) -> None:
    async def _complete_daily(call: ServiceCall) -> None:
        await tracker.async_complete_daily()

    async def _complete_chapter(call: ServiceCall) -> None:
        start = call.data[ATTR_START]
        end = call.data.get(ATTR_END, start)
        try:
            await tracker.async_complete_chapter(start, end)
        except InvalidSelection as err:
            raise ServiceValidationError(str(err)) from err

    async def _complete_section(call: ServiceCall) -> None:
        try:
            await tracker.async_complete_section(call.data[ATTR_SECTION])
        except InvalidSelection as err:
            raise ServiceValidationError(str(err)) from err

    async def _catch_up(call: ServiceCall) -> None:
        try:
            await tracker.async_catch_up(call.data.get(ATTR_DAY))
        except InvalidSelection as err:
            raise ServiceValidationError(str(err)) from err

    async def _navigate_month(call: ServiceCall) -> None:
        await tracker.async_navigate_month(call.data[ATTR_DIRECTION], reset=call.data[ATTR_RESET])

    async def _fetch_chapters(call: ServiceCall) -> ServiceResponse:
        try:
            units = await tracker.async_fetch_chapters(call.data[ATTR_START], call.data[ATTR_END])
        except InvalidSelection as err:
            raise ServiceValidationError(str(err)) from err
        return {
            "chapters": [
                {"chapter": u.unit_index, "lines": list(u.lines), "fallback": u.is_fallback}
                for u in units
            ]
        }

    hass.services.async_register(DOMAIN, SERVICE_COMPLETE_DAILY, _complete_daily)
    hass.services.async_register(
        DOMAIN, SERVICE_COMPLETE_CHAPTER, _complete_chapter, schema=COMPLETE_CHAPTER_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_COMPLETE_SECTION, _complete_section, schema=COMPLETE_SECTION_SCHEMA
    )
    hass.services.async_register(DOMAIN, SERVICE_CATCH_UP, _catch_up, schema=CATCH_UP_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_NAVIGATE_MONTH, _navigate_month, schema=NAVIGATE_MONTH_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_FETCH_CHAPTERS,
        _fetch_chapters,
        schema=FETCH_CHAPTERS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )


async def _async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Called when the user hits Submit on the Options page."""
    # Schedule the reload shortly after to apply new options
    async_call_later(
        hass,
        1,
        lambda now: _delayed_reload(hass, entry.entry_id),
    )


def _delayed_reload(hass: HomeAssistant, entry_id: str) -> None:
    """Helper for async_call_later: switch back to the event loop and reload."""
    _LOGGER.debug("Tehilim Tracker: scheduling reload of entry %s", entry_id)
    hass.loop.call_soon_threadsafe(
        lambda: hass.async_create_task(hass.config_entries.async_reload(entry_id))
    )


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unloaded = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unloaded:
        hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        for service in (
            SERVICE_COMPLETE_DAILY,
            SERVICE_COMPLETE_CHAPTER,
            SERVICE_COMPLETE_SECTION,
            SERVICE_CATCH_UP,
            SERVICE_NAVIGATE_MONTH,
            SERVICE_FETCH_CHAPTERS,
        ):
            hass.services.async_remove(DOMAIN, service)
    return unloaded
