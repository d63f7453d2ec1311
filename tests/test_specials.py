from datetime import date

from custom_components.tehilim_tracker.tehilim_lib.specials import is_exempt, is_rest_day

SHABBOS = date(2025, 7, 12)
TUESDAY = date(2025, 7, 8)


def test_shabbos_is_exempt_without_observances():
    assert is_rest_day(SHABBOS)
    assert is_exempt(SHABBOS)
    assert is_exempt(SHABBOS, [])


def test_weekday_without_observances_is_not_exempt():
    assert not is_exempt(TUESDAY)
    assert not is_exempt(TUESDAY, None)


def test_holiday_keywords_match_as_substrings():
    assert is_exempt(TUESDAY, ["צום גדליה"])
    assert is_exempt(TUESDAY, ["ערב חנוכה", "פסח II"])
    assert is_exempt(TUESDAY, ["יום טוב"])


def test_minor_days_are_not_exempt():
    assert not is_exempt(TUESDAY, ["חנוכה: 3 נרות", "ראש חודש"])


def test_keywords_are_hebrew_and_case_sensitive():
    assert not is_exempt(TUESDAY, ["Pesach I", "Yom Kippur"])
