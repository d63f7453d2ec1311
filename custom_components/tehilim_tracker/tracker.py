# /config/custom_components/tehilim_tracker/tracker.py
"""
Runtime owner of the progress ledger.

Every mutation goes through `_async_apply` under one asyncio.Lock, swaps in
the new ledger, persists it and then tells the entities to refresh. Calendar
lookups happen before the swap, so a slow or dead network never leaves a
half-applied completion behind.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util

from .const import EVENT_CYCLE_COMPLETED, GAP_SCAN_TIMEOUT, SIGNAL_UPDATED
from .tehilim_lib.content import ContentProvider
from .tehilim_lib.exceptions import InvalidSelection, StoreUnavailable
from .tehilim_lib.helper import format_hebrew_year, shift_month
from .tehilim_lib.ledger import (
    CompletionOutcome,
    ProgressLedger,
    complete_range,
    day_gap,
    days_between,
    find_protected_gap,
    gap_scan_days,
)
from .tehilim_lib.models import CalendarDate, CycleScheme, ProtectedGap, PsalmUnit, RangeAssignment
from .tehilim_lib.oracle import CalendarOracle, local_month_length
from .tehilim_lib.progress import (
    STATUS_MISSED,
    cycle_percent,
    day_status,
    month_statuses,
    section_progress,
)
from .tehilim_lib.schedules import (
    CHAPTER_COUNT,
    monthly_assignment,
    resolve_range,
    section_assignment,
)
from .tehilim_lib.specials import is_exempt, is_rest_day

_LOGGER = logging.getLogger(__name__)

# No run of exempt days is this long, so a longer gap always holds a working
# weekday and breaks the streak whether or not its holidays are looked up
STREAK_LOOKUP_LIMIT = 14


class TehilimTracker:
    """Single writer for the ledger plus the derived state the entities show."""

    def __init__(
        self,
        hass: HomeAssistant,
        store: Store,
        oracle: CalendarOracle,
        content: ContentProvider,
        *,
        default_scheme: CycleScheme = CycleScheme.MONTHLY,
    ) -> None:
        self.hass = hass
        self._store = store
        self._oracle = oracle
        self._content = content
        self._default_scheme = CycleScheme(default_scheme)
        self._lock = asyncio.Lock()
        self._save_failed = False

        self.ledger = ProgressLedger(active_scheme=self._default_scheme)
        self.protected_gap: ProtectedGap | None = None
        self.today_cal: CalendarDate | None = None

        # Month view
        self._view_generation = 0
        self._view_follows_today = True
        self.view_year: int | None = None
        self.view_month: str | None = None
        self.view_length: int | None = None
        self.view_first_weekday: int | None = None

    # ─── Lifecycle ──────────────────────────────────────────────────────────

    def _today(self) -> date:
        return dt_util.now().date()

    async def async_load(self) -> None:
        """Load the stored ledger. Unreadable storage starts a fresh one."""
        try:
            data = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as err:
            _LOGGER.warning("Could not read stored Tehilim progress (%s); starting fresh", err)
            data = None

        if data is None:
            self.ledger = ProgressLedger(active_scheme=self._default_scheme)
        else:
            self.ledger = ProgressLedger.from_dict(data)

        await self.async_refresh_today()

    async def async_refresh_today(self) -> None:
        """Resolve today's Hebrew date; called at startup and just after midnight."""
        today = self._today()
        self.today_cal = await self._oracle.date_to_calendar(today)
        self._drop_stale_gap()
        if self._view_follows_today:
            await self._async_load_month(self.today_cal.year, self.today_cal.month_name)
        self._notify()

    async def _async_today_calendar(self) -> CalendarDate:
        today = self._today()
        if self.today_cal is None or self.today_cal.gregorian != today:
            self.today_cal = await self._oracle.date_to_calendar(today)
            self._drop_stale_gap()
        return self.today_cal

    def _drop_stale_gap(self) -> None:
        """The catch-up marker only lives within the Hebrew month it was found in."""
        gap = self.protected_gap
        cal = self.today_cal
        if gap is None or cal is None:
            return
        if (gap.year, gap.month_name) != (cal.year, cal.month_name):
            _LOGGER.debug("Dropping catch-up day %d of %s; the month is over", gap.ordinal, gap.month_name)
            self.protected_gap = None

    def _notify(self) -> None:
        async_dispatcher_send(self.hass, SIGNAL_UPDATED)

    # ─── Persistence ────────────────────────────────────────────────────────

    async def _async_save(self) -> None:
        try:
            await self._store.async_save(self.ledger.as_dict())
        except (HomeAssistantError, OSError, TypeError, ValueError) as err:
            raise StoreUnavailable(str(err)) from err

    async def _async_persist(self) -> None:
        """Save, keeping the in-memory ledger authoritative if the store fails."""
        try:
            await self._async_save()
        except StoreUnavailable as err:
            self._save_failed = True
            _LOGGER.warning("Saving Tehilim progress failed (%s); will retry on next change", err)
            return
        if self._save_failed:
            _LOGGER.info("Saving Tehilim progress works again")
            self._save_failed = False

    # ─── Streak support ─────────────────────────────────────────────────────

    async def _async_exempt_days(self, today: date) -> set[date]:
        """Skipped days since the last daily completion that don't break the streak."""
        last = self.ledger.last_completion_date
        if last is None or day_gap(today, last) <= 1:
            return set()

        skipped = days_between(last, today)
        if len(skipped) > STREAK_LOOKUP_LIMIT:
            return {d for d in skipped if is_rest_day(d)}

        resolved = await self._oracle.dates_to_calendar(skipped)
        return {cal.gregorian for cal in resolved if is_exempt(cal.gregorian, cal.observances)}

    # ─── Mutations ──────────────────────────────────────────────────────────

    async def _async_apply(self, assignment: RangeAssignment, *, daily: bool) -> CompletionOutcome:
        """Must be called with the lock held."""
        today = self._today()
        exempt_days = await self._async_exempt_days(today) if daily else set()

        outcome = complete_range(
            self.ledger,
            assignment,
            daily=daily,
            today=today,
            is_exempt_day=exempt_days.__contains__,
        )
        self.ledger = outcome.ledger

        if outcome.rolled_over:
            self.hass.bus.async_fire(
                EVENT_CYCLE_COMPLETED,
                {
                    "cycles_completed": self.ledger.cycles_completed,
                    "total_units_completed": self.ledger.total_units_completed,
                },
            )

        gap = self.protected_gap
        if gap is not None and gap.assignment.start in self.ledger.completed_units:
            _LOGGER.debug("Protected day %d caught up", gap.ordinal)
            self.protected_gap = None

        await self._async_persist()
        self._notify()
        return outcome

    async def async_complete_daily(self) -> CompletionOutcome:
        async with self._lock:
            cal = await self._async_today_calendar()
            assignment = resolve_range(cal, self.ledger.active_scheme)
            return await self._async_apply(assignment, daily=True)

    async def async_complete_chapter(self, start: int, end: int | None = None) -> CompletionOutcome:
        end = start if end is None else end
        if not 1 <= start <= end <= CHAPTER_COUNT:
            raise InvalidSelection(f"Chapters must satisfy 1 <= start <= end <= {CHAPTER_COUNT}")
        async with self._lock:
            cal = await self._async_today_calendar()
            assignment = resolve_range(cal, CycleScheme.SINGLE, selection=(start, end))
            return await self._async_apply(assignment, daily=False)

    async def async_complete_section(self, section: int) -> CompletionOutcome:
        try:
            section_assignment(section)
        except ValueError as err:
            raise InvalidSelection(str(err)) from err
        async with self._lock:
            cal = await self._async_today_calendar()
            assignment = resolve_range(cal, CycleScheme.SECTION, section=section)
            return await self._async_apply(assignment, daily=False)

    async def async_catch_up(self, day: int | None = None) -> CompletionOutcome:
        """Complete the monthly reading of a missed day earlier this month."""
        async with self._lock:
            cal = await self._async_today_calendar()
            if day is None:
                if self.protected_gap is None:
                    raise InvalidSelection("No protected missed day to catch up")
                day = self.protected_gap.ordinal

            status = day_status(
                self.ledger, cal, cal.year, cal.month_name, day, self.completed_today
            )
            if not 1 <= day < cal.day or status != STATUS_MISSED:
                raise InvalidSelection(f"Day {day} is not a missed day of {cal.month_name}")

            missed = monthly_assignment(day)
            assignment = resolve_range(cal, CycleScheme.CATCH_UP, selection=(missed.start, missed.end))

            if self.protected_gap is not None and self.protected_gap.ordinal == day:
                self.protected_gap = None
            return await self._async_apply(assignment, daily=False)

    async def async_set_scheme(self, scheme: CycleScheme | str) -> None:
        try:
            scheme = CycleScheme(scheme)
        except ValueError as err:
            raise InvalidSelection(f"Unknown scheme {scheme!r}") from err
        if not scheme.is_daily:
            raise InvalidSelection(f"{scheme} is not a daily scheme")
        async with self._lock:
            if self.ledger.active_scheme == scheme:
                return
            updated = self.ledger.copy()
            updated.active_scheme = scheme
            self.ledger = updated
            _LOGGER.debug("Active scheme is now %s", scheme)
            await self._async_persist()
        self._notify()

    # ─── Protected gap ──────────────────────────────────────────────────────

    async def async_scan_protected_gap(self) -> ProtectedGap | None:
        """Look for an exempt skipped day this month whose reading is still open."""
        today = self._today()
        days = gap_scan_days(self.ledger, today)
        if not days:
            return None

        try:
            async with asyncio.timeout(GAP_SCAN_TIMEOUT):
                today_cal = await self._async_today_calendar()
                walked = await self._oracle.dates_to_calendar(days)
        except TimeoutError:
            _LOGGER.warning("Scanning %d skipped days timed out; no catch-up day marked", len(days))
            return None

        self.protected_gap = find_protected_gap(self.ledger, today_cal, walked)
        self._notify()
        return self.protected_gap

    # ─── Month view ─────────────────────────────────────────────────────────

    def _begin_month(self, year: int, month_name: str) -> int:
        self._view_generation += 1
        self.view_year, self.view_month = year, month_name
        self.view_length = None
        self.view_first_weekday = None
        return self._view_generation

    async def _async_fill_month(self, generation: int) -> None:
        """Look up length and first weekday; a newer navigation wins over this one."""
        year, month_name = self.view_year, self.view_month
        length = await self._oracle.month_length(year, month_name)
        first_weekday = await self._oracle.month_start_weekday(year, month_name)
        if generation != self._view_generation:
            _LOGGER.debug("Dropping stale month data for %s %s", month_name, year)
            return
        self.view_length = length
        self.view_first_weekday = first_weekday

    async def _async_load_month(self, year: int, month_name: str) -> None:
        await self._async_fill_month(self._begin_month(year, month_name))

    async def async_navigate_month(self, direction: int = 0, reset: bool = False) -> None:
        today_cal = await self._async_today_calendar()
        if reset or self.view_year is None:
            year, month = today_cal.year, today_cal.month_name
        else:
            year, month = shift_month(self.view_year, self.view_month, direction)

        self._view_follows_today = (year, month) == (today_cal.year, today_cal.month_name)
        generation = self._begin_month(year, month)
        self._notify()
        await self._async_fill_month(generation)
        self._notify()

    # ─── Read accessors ─────────────────────────────────────────────────────

    @property
    def completed_today(self) -> bool:
        return self.ledger.last_completion_date == self._today()

    @property
    def today_assignment(self) -> RangeAssignment | None:
        if self.today_cal is None:
            return None
        return resolve_range(self.today_cal, self.ledger.active_scheme)

    @property
    def exempt_today(self) -> bool:
        if self.today_cal is None:
            return is_rest_day(self._today())
        return is_exempt(self.today_cal.gregorian, self.today_cal.observances)

    def progress_snapshot(self) -> dict[str, Any]:
        return {
            "completed_units": len([u for u in self.ledger.completed_units if u <= CHAPTER_COUNT]),
            "cycles_completed": self.ledger.cycles_completed,
            "total_units_completed": self.ledger.total_units_completed,
            "percent": cycle_percent(self.ledger),
            "sections": section_progress(self.ledger),
        }

    def month_view(self) -> dict[str, Any]:
        if self.view_year is None or self.today_cal is None:
            return {}
        length = self.view_length or local_month_length(self.view_year, self.view_month)
        return {
            "year": self.view_year,
            "year_label": format_hebrew_year(self.view_year),
            "month": self.view_month,
            "length": length,
            "first_weekday": self.view_first_weekday,
            "loading": self.view_length is None,
            "days": month_statuses(
                self.ledger,
                self.today_cal,
                self.view_year,
                self.view_month,
                length,
                self.completed_today,
            ),
        }

    async def async_fetch_chapters(self, start: int, end: int) -> list[PsalmUnit]:
        if not 1 <= start <= end <= CHAPTER_COUNT:
            raise InvalidSelection(f"Chapters must satisfy 1 <= start <= end <= {CHAPTER_COUNT}")
        return await self._content.fetch_units(start, end)
