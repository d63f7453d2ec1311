# /config/custom_components/tehilim_tracker/tehilim_lib/specials.py
"""Which days may be skipped without breaking a streak."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from .helper import sunday_weekday

# Sunday-first weekday index of Shabbos
REST_WEEKDAY = 6

# Matched as substrings, case-sensitively, against every observance name
HOLIDAY_KEYWORDS = (
    "יום טוב",
    "פסח",
    "שבועות",
    "סוכות",
    "ראש השנה",
    "יום כיפור",
    "שבת",
    "צום",
)


def is_rest_day(gdate: date) -> bool:
    return sunday_weekday(gdate) == REST_WEEKDAY


def is_exempt(gdate: date, observances: Iterable[str] | None = None) -> bool:
    """True on Shabbos, or when any observance names a Yom Tov, Shabbos or fast."""
    if is_rest_day(gdate):
        return True
    return any(
        keyword in event
        for event in observances or ()
        for keyword in HOLIDAY_KEYWORDS
    )
