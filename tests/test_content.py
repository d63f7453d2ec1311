import aiohttp

from custom_components.tehilim_tracker.tehilim_lib.content import FALLBACK_TEXTS, ContentProvider

from .conftest import FakeSession


async def test_chapters_are_flattened_and_stripped():
    session = FakeSession({"he": ["<b>מִזְמוֹר</b> לְדָוִד", ["", "שִׁיר"]]})
    units = await ContentProvider(session).fetch_units(23, 23)
    assert len(units) == 1
    assert units[0].unit_index == 23
    assert units[0].lines == ("מִזְמוֹר לְדָוִד", "שִׁיר")
    assert not units[0].is_fallback


async def test_failed_chapter_uses_fallback_text():
    session = FakeSession({"he": ["א"]}, aiohttp.ClientConnectionError("down"))
    units = await ContentProvider(session).fetch_units(22, 23)
    assert [u.is_fallback for u in units] == [False, True]
    assert units[1].lines == FALLBACK_TEXTS[23]


async def test_offline_provider_clamps_range():
    units = await ContentProvider(None, online=False).fetch_units(149, 160)
    assert [u.unit_index for u in units] == [149, 150]
    assert all(u.is_fallback for u in units)
    assert units[0].lines


async def test_dead_network_costs_one_request():
    session = FakeSession({"he": ["א"]}, aiohttp.ClientConnectionError("down"))
    units = await ContentProvider(session).fetch_units(107, 150)
    assert len(units) == 44
    assert not units[0].is_fallback
    assert all(u.is_fallback for u in units[1:])
    assert len(session.calls) == 2
