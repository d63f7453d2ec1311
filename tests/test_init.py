"""Integration setup, services and entities against a running Home Assistant."""

import pytest
import voluptuous as vol

from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ServiceValidationError
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.tehilim_tracker.config_flow import CONF_USE_ONLINE_CALENDAR
from custom_components.tehilim_tracker.const import (
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
from custom_components.tehilim_tracker.tehilim_lib.content import FALLBACK_TEXTS

pytestmark = pytest.mark.usefixtures("enable_custom_integrations")

ENTITY_IDS = (
    "sensor.tehilim_today",
    "sensor.tehilim_streak",
    "sensor.tehilim_progress",
    "sensor.tehilim_protected_gap",
    "sensor.tehilim_month_view",
    "binary_sensor.tehilim_completed_today",
    "binary_sensor.tehilim_exempt_today",
    "select.tehilim_cycle_scheme",
)
SERVICES = (
    SERVICE_COMPLETE_DAILY,
    SERVICE_COMPLETE_CHAPTER,
    SERVICE_COMPLETE_SECTION,
    SERVICE_CATCH_UP,
    SERVICE_NAVIGATE_MONTH,
    SERVICE_FETCH_CHAPTERS,
)


@pytest.fixture
async def entry(hass: HomeAssistant):
    """A loaded entry on the local calendar; unloaded again after the test."""
    config_entry = MockConfigEntry(
        domain=DOMAIN,
        title="Tehilim Tracker",
        data={CONF_USE_ONLINE_CALENDAR: False},
    )
    config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(config_entry.entry_id)
    await hass.async_block_till_done()
    yield config_entry
    if config_entry.state is ConfigEntryState.LOADED:
        assert await hass.config_entries.async_unload(config_entry.entry_id)
        await hass.async_block_till_done()


async def _call(hass: HomeAssistant, service: str, data: dict | None = None, **kwargs):
    return await hass.services.async_call(DOMAIN, service, data or {}, blocking=True, **kwargs)


async def test_setup_creates_entities_and_services(hass: HomeAssistant, entry):
    assert entry.state is ConfigEntryState.LOADED
    for entity_id in ENTITY_IDS:
        assert hass.states.get(entity_id) is not None, entity_id
    for service in SERVICES:
        assert hass.services.has_service(DOMAIN, service)

    assert hass.states.get("sensor.tehilim_streak").state == "0"
    assert hass.states.get("binary_sensor.tehilim_completed_today").state == "off"
    assert hass.states.get("select.tehilim_cycle_scheme").state == "month"
    assert hass.states.get("sensor.tehilim_today").attributes["offline_calendar"] is True


async def test_unload_removes_services_and_runtime_data(hass: HomeAssistant, entry):
    assert await hass.config_entries.async_unload(entry.entry_id)
    await hass.async_block_till_done()

    assert entry.state is ConfigEntryState.NOT_LOADED
    assert hass.data[DOMAIN] == {}
    for service in SERVICES:
        assert not hass.services.has_service(DOMAIN, service)


async def test_stored_progress_is_restored(hass: HomeAssistant, hass_storage):
    hass_storage[STORAGE_KEY] = {
        "version": STORAGE_VERSION,
        "minor_version": 1,
        "key": STORAGE_KEY,
        "data": {"current_streak": 5, "max_streak": 9, "completed_units": [1, 2, 3]},
    }
    config_entry = MockConfigEntry(domain=DOMAIN, data={CONF_USE_ONLINE_CALENDAR: False})
    config_entry.add_to_hass(hass)
    assert await hass.config_entries.async_setup(config_entry.entry_id)
    await hass.async_block_till_done()

    streak = hass.states.get("sensor.tehilim_streak")
    assert streak.state == "5"
    assert streak.attributes["max_streak"] == 9
    assert hass.states.get("sensor.tehilim_progress").state == "3"

    assert await hass.config_entries.async_unload(config_entry.entry_id)
    await hass.async_block_till_done()


async def test_complete_daily_updates_entities_and_store(hass: HomeAssistant, entry, hass_storage):
    await _call(hass, SERVICE_COMPLETE_DAILY)
    await hass.async_block_till_done()

    assert hass.states.get("sensor.tehilim_streak").state == "1"
    assert hass.states.get("binary_sensor.tehilim_completed_today").state == "on"
    today = hass.states.get("sensor.tehilim_today").attributes
    progress = int(hass.states.get("sensor.tehilim_progress").state)
    assert progress == today["end"] - today["start"] + 1

    stored = hass_storage[STORAGE_KEY]["data"]
    assert stored["days_completed"] == 1
    assert stored["current_streak"] == 1


async def test_complete_chapter_service(hass: HomeAssistant, entry):
    await _call(hass, SERVICE_COMPLETE_CHAPTER, {"start": 23})
    await _call(hass, SERVICE_COMPLETE_CHAPTER, {"start": 120, "end": 122})
    await hass.async_block_till_done()

    assert hass.states.get("sensor.tehilim_progress").state == "4"
    assert hass.states.get("sensor.tehilim_streak").state == "0"


async def test_complete_chapter_rejects_reversed_range(hass: HomeAssistant, entry):
    with pytest.raises(ServiceValidationError):
        await _call(hass, SERVICE_COMPLETE_CHAPTER, {"start": 10, "end": 5})
    assert hass.states.get("sensor.tehilim_progress").state == "0"


@pytest.mark.parametrize(
    ("service", "data"),
    [
        (SERVICE_COMPLETE_CHAPTER, {"start": 151}),
        (SERVICE_COMPLETE_CHAPTER, {"start": 0}),
        (SERVICE_COMPLETE_SECTION, {"section": 6}),
        (SERVICE_CATCH_UP, {"day": 31}),
        (SERVICE_NAVIGATE_MONTH, {"direction": 2}),
        (SERVICE_FETCH_CHAPTERS, {"start": 1}),
    ],
)
async def test_service_schemas_reject_bad_input(hass: HomeAssistant, entry, service, data):
    with pytest.raises(vol.Invalid):
        await _call(hass, service, data)


async def test_complete_section_service(hass: HomeAssistant, entry):
    await _call(hass, SERVICE_COMPLETE_SECTION, {"section": 1})
    await hass.async_block_till_done()

    progress = hass.states.get("sensor.tehilim_progress")
    assert progress.state == "41"
    first_book = progress.attributes["sections"][0]
    assert (first_book["read"], first_book["total"]) == (41, 41)


async def test_catch_up_without_missed_day_is_rejected(hass: HomeAssistant, entry):
    assert hass.states.get("sensor.tehilim_protected_gap").state == "unknown"
    with pytest.raises(ServiceValidationError):
        await _call(hass, SERVICE_CATCH_UP)


async def test_fetch_chapters_returns_texts(hass: HomeAssistant, entry):
    response = await _call(
        hass, SERVICE_FETCH_CHAPTERS, {"start": 1, "end": 3}, return_response=True
    )
    chapters = response["chapters"]
    assert [c["chapter"] for c in chapters] == [1, 2, 3]
    assert chapters[0]["lines"] == list(FALLBACK_TEXTS[1])
    assert all(c["fallback"] for c in chapters)

    with pytest.raises(ServiceValidationError):
        await _call(hass, SERVICE_FETCH_CHAPTERS, {"start": 3, "end": 1}, return_response=True)


async def test_navigate_month_service(hass: HomeAssistant, entry):
    home = hass.states.get("sensor.tehilim_month_view").state

    await _call(hass, SERVICE_NAVIGATE_MONTH, {"direction": 1})
    await hass.async_block_till_done()
    view = hass.states.get("sensor.tehilim_month_view")
    assert view.state != home
    assert view.attributes["length"] in (29, 30)
    assert len(view.attributes["days"]) == view.attributes["length"]

    await _call(hass, SERVICE_NAVIGATE_MONTH, {"reset": True})
    await hass.async_block_till_done()
    assert hass.states.get("sensor.tehilim_month_view").state == home


async def test_select_switches_daily_scheme(hass: HomeAssistant, entry, hass_storage):
    await hass.services.async_call(
        "select",
        "select_option",
        {"entity_id": "select.tehilim_cycle_scheme", "option": "week"},
        blocking=True,
    )
    await hass.async_block_till_done()

    assert hass.states.get("select.tehilim_cycle_scheme").state == "week"
    assert hass.states.get("sensor.tehilim_today").attributes["scheme"] == "week"
    assert hass_storage[STORAGE_KEY]["data"]["active_scheme"] == "week"
