# /config/custom_components/tehilim_tracker/tehilim_lib/oracle.py

"""
Calendar oracle: Gregorian ↔ Hebrew conversion plus the day's observances.

Asks hebcal.com first (short timeout) and falls back to a local pyluach/hdate
computation on any failure. The local path is exact for conversion and month
lengths; its observance names are Hebrew tags the exemption check understands.
Online replies carry the same local tags, so a day is exempt or not regardless
of which path answered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from datetime import date

import aiohttp
from hdate import HDateInfo
from pyluach.hebrewcal import HebrewDate as PHebrewDate

from .exceptions import OracleUnavailable
from .helper import (
    HEB2QUERY,
    get_hebrew_month_name,
    hebrew_date_label,
    month_number,
    normalize_month_name,
    shift_month,
    sunday_weekday,
    translate_events,
    translate_month,
)
from .models import CalendarDate
from .specials import is_rest_day

_LOGGER = logging.getLogger(__name__)

HEBCAL_CONVERTER_URL = "https://www.hebcal.com/converter"
DEFAULT_TIMEOUT = 2.0

SHABBOS_TAG = "שבת קודש"
YOM_TOV_TAG = "יום טוב"
ROSH_CHODESH_TAG = "ראש חודש"


# ─── Local fallback ─────────────────────────────────────────────────────────

def local_observances(gdate: date, israel: bool = False) -> list[str]:
    hd = PHebrewDate.from_pydate(gdate)
    events: list[str] = []

    if is_rest_day(gdate):
        events.append(SHABBOS_TAG)

    festival = hd.festival(israel=israel, hebrew=True)
    if festival:
        events.append(festival)

    fast = hd.fast_day(hebrew=True)
    if fast:
        events.append(fast if "צום" in fast else f"צום {fast}")

    if HDateInfo(gdate, diaspora=not israel).is_yom_tov:
        events.append(YOM_TOV_TAG)

    # Rosh Chodesh (not 1 Tishrei)
    if hd.day in (1, 30) and not (hd.month == 7 and hd.day == 1):
        events.append(ROSH_CHODESH_TAG)

    return events


def merge_observances(online: Iterable[str], local: Iterable[str]) -> tuple[str, ...]:
    """Hebcal names first, then any local tag Hebcal did not already give."""
    merged = list(online)
    merged.extend(tag for tag in local if tag not in merged)
    return tuple(merged)


def local_date_to_calendar(gdate: date, israel: bool = False) -> CalendarDate:
    hd = PHebrewDate.from_pydate(gdate)
    month_name = get_hebrew_month_name(hd.month, hd.year)
    return CalendarDate(
        gregorian=gdate,
        year=hd.year,
        month_name=month_name,
        day=hd.day,
        display_label=hebrew_date_label(hd.day, month_name, hd.year),
        observances=tuple(local_observances(gdate, israel)),
        is_fallback=True,
    )


def local_calendar_to_date(year: int, month_name: str, day: int) -> date:
    return PHebrewDate(year, month_number(month_name, year), day).to_pydate()


def local_month_length(year: int, month_name: str) -> int:
    """29 or 30, without building an invalid 30th day."""
    try:
        PHebrewDate(year, month_number(month_name, year), 30)
        return 30
    except ValueError:
        return 29


# ─── Oracle ─────────────────────────────────────────────────────────────────

class CalendarOracle:
    """hebcal.com with a local fallback. Never raises for a valid date."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None,
        *,
        israel: bool = False,
        online: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session
        self._israel = israel
        self._online = online and session is not None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _fetch(self, params: dict[str, str | int]) -> dict:
        if not self._online:
            raise OracleUnavailable("online calendar disabled")
        try:
            async with self._session.get(
                HEBCAL_CONVERTER_URL, params=params, timeout=self._timeout
            ) as response:
                if response.status != 200:
                    raise OracleUnavailable(f"HTTP {response.status}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise OracleUnavailable(str(err) or type(err).__name__) from err

        if not isinstance(data, dict) or "error" in data:
            raise OracleUnavailable(f"Unexpected converter reply: {data!r}")
        return data

    async def date_to_calendar(self, gdate: date) -> CalendarDate:
        params = {"cfg": "json", "gy": gdate.year, "gm": gdate.month, "gd": gdate.day, "g2h": 1}
        try:
            data = await self._fetch(params)
            year = int(data["hy"])
            day = int(data["hd"])
            month_name = translate_month(data["hm"])
            return CalendarDate(
                gregorian=gdate,
                year=year,
                month_name=month_name,
                day=day,
                display_label=hebrew_date_label(day, month_name, year),
                observances=merge_observances(
                    translate_events(data.get("events")),
                    local_observances(gdate, self._israel),
                ),
            )
        except (OracleUnavailable, KeyError, TypeError, ValueError) as err:
            _LOGGER.debug("Hebrew date for %s from local calendar (%s)", gdate, err)
            return local_date_to_calendar(gdate, self._israel)

    async def dates_to_calendar(self, days: Iterable[date]) -> list[CalendarDate]:
        """
        Resolve several days in order. After the first failed lookup the rest
        go straight to the local calendar, so a dead network costs one timeout.
        """
        resolved: list[CalendarDate] = []
        online = self._online
        for gdate in days:
            if online:
                cal = await self.date_to_calendar(gdate)
                online = not cal.is_fallback
            else:
                cal = local_date_to_calendar(gdate, self._israel)
            resolved.append(cal)
        return resolved

    async def calendar_to_date(self, year: int, month_name: str, day: int) -> date:
        name = normalize_month_name(month_name, year)
        params = {"cfg": "json", "hy": year, "hm": HEB2QUERY.get(name, name), "hd": day, "h2g": 1}
        try:
            data = await self._fetch(params)
            return date(int(data["gy"]), int(data["gm"]), int(data["gd"]))
        except (OracleUnavailable, KeyError, TypeError, ValueError) as err:
            _LOGGER.debug("Gregorian date for %s %s %s from local calendar (%s)", day, name, year, err)
            return local_calendar_to_date(year, name, day)

    async def month_length(self, year: int, month_name: str) -> int:
        first = await self.calendar_to_date(year, month_name, 1)
        next_year, next_month = shift_month(year, month_name, 1)
        next_first = await self.calendar_to_date(next_year, next_month, 1)
        length = (next_first - first).days
        if length not in (29, 30):
            _LOGGER.debug("Implausible length %d for %s %s; using local calendar", length, month_name, year)
            return local_month_length(year, month_name)
        return length

    async def month_start_weekday(self, year: int, month_name: str) -> int:
        """Sunday-first weekday of the 1st of the month."""
        return sunday_weekday(await self.calendar_to_date(year, month_name, 1))
