"""Shared fakes: an in-memory store and a scripted aiohttp session."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import aiohttp
import pytest

from homeassistant.exceptions import HomeAssistantError

from custom_components.tehilim_tracker import tracker as tracker_module
from custom_components.tehilim_tracker.tehilim_lib.content import ContentProvider
from custom_components.tehilim_tracker.tehilim_lib.oracle import CalendarOracle
from custom_components.tehilim_tracker.tracker import TehilimTracker


class FakeStore:
    """Stands in for homeassistant.helpers.storage.Store."""

    def __init__(self, data=None, *, fail_load: bool = False, fail_save: bool = False) -> None:
        self.data = data
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.saves = 0

    async def async_load(self):
        if self.fail_load:
            raise HomeAssistantError("corrupt storage file")
        return self.data

    async def async_save(self, data) -> None:
        self.saves += 1
        if self.fail_save:
            raise OSError("disk full")
        self.data = data


class FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self._payload = payload
        self.status = status

    async def json(self, content_type=None):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replies with queued payloads; an exception in the queue is raised instead."""

    def __init__(self, *replies) -> None:
        self.replies = list(replies)
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        reply = self.replies.pop(0) if self.replies else aiohttp.ClientConnectionError("offline")
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, FakeResponse):
            return reply
        return FakeResponse(reply)


class Clock:
    def __init__(self, day: date) -> None:
        self.day = day


@pytest.fixture
def signals(monkeypatch) -> list[str]:
    sent: list[str] = []
    monkeypatch.setattr(
        tracker_module, "async_dispatcher_send", lambda hass, signal: sent.append(signal)
    )
    return sent


@pytest.fixture
def clock() -> Clock:
    # Sunday 10 Tammuz 5785
    return Clock(date(2025, 7, 6))


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_tracker(signals, clock, store):
    def _make(oracle: CalendarOracle | None = None, **kwargs) -> TehilimTracker:
        tracker = TehilimTracker(
            MagicMock(),
            store,
            oracle or CalendarOracle(None, online=False),
            ContentProvider(None, online=False),
            **kwargs,
        )
        tracker._today = lambda: clock.day
        return tracker

    return _make
