# /config/custom_components/tehilim_tracker/tehilim_lib/helper.py

"""
Hebrew numerals, month names and calendar navigation helpers.

Month numbers follow pyluach (1=Nisan … 12=Adar / Adar I, 13=Adar II).
Weekday indexes handed to the cycle tables follow a Sunday-first week
(0=Sunday … 6=Shabbos), which is NOT Python's date.weekday().
"""

from __future__ import annotations

from datetime import date

from pyluach.hebrewcal import Year as PYear


_LETTERS = [
    (400, "ת"), (300, "ש"), (200, "ר"), (100, "ק"),
    (90,  "צ"),  (80,  "פ"),  (70,  "ע"),  (60,  "ס"),  (50,  "נ"),
    (40,  "מ"),  (30,  "ל"),  (20,  "כ"),  (10,  "י"),
    (9,   "ט"),  (8,   "ח"),  (7,   "ז"),  (6,   "ו"),  (5,   "ה"),
    (4,   "ד"),  (3,   "ג"),  (2,   "ב"),  (1,   "א"),
]

# ─── Month names ─────────────────────────────────────────────────────────────

ADAR = "אדר"
ADAR_I = "אדר א'"
ADAR_II = "אדר ב'"

PY2HEB = {
    1:  "ניסן",
    2:  "אייר",
    3:  "סיון",
    4:  "תמוז",
    5:  "אב",
    6:  "אלול",
    7:  "תשרי",
    8:  "חשון",
    9:  "כסלו",
    10: "טבת",
    11: "שבט",
}

HEBREW_MONTH_INDEX = {name: num for num, name in PY2HEB.items()}
HEBREW_MONTH_INDEX.update({ADAR: 12, ADAR_I: 12, ADAR_II: 13})

# Month names as the online converter spells them (both old and new spellings)
ENG2HEB = {
    "Nisan":    "ניסן",
    "Iyar":     "אייר",
    "Iyyar":    "אייר",
    "Sivan":    "סיון",
    "Tamuz":    "תמוז",
    "Tammuz":   "תמוז",
    "Av":       "אב",
    "Elul":     "אלול",
    "Tishrei":  "תשרי",
    "Cheshvan": "חשון",
    "Kislev":   "כסלו",
    "Tevet":    "טבת",
    "Shvat":    "שבט",
    "Sh'vat":   "שבט",
    "Adar":     ADAR,
    "Adar I":   ADAR_I,
    "Adar II":  ADAR_II,
    "Adar 1":   ADAR_I,
    "Adar 2":   ADAR_II,
}

# Month names as the online converter accepts them in a query
HEB2QUERY = {
    "ניסן": "Nisan", "אייר": "Iyyar", "סיון": "Sivan", "תמוז": "Tamuz",
    "אב": "Av", "אלול": "Elul", "תשרי": "Tishrei", "חשון": "Cheshvan",
    "כסלו": "Kislev", "טבת": "Tevet", "שבט": "Shvat",
    ADAR: "Adar", ADAR_I: "Adar1", ADAR_II: "Adar2",
}

# Substring replacements applied to online observance names
EVENT_MAP = {
    "Shabbat": "שבת קודש",
    "Pesach": "פסח",
    "Shavuot": "שבועות",
    "Sukkot": "סוכות",
    "Rosh Hashana": "ראש השנה",
    "Yom Kippur": "יום כיפור",
    "Chanukah": "חנוכה",
    "Purim": "פורים",
    "Yom Tov": "יום טוב",
    "Rosh Chodesh": "ראש חודש",
    "Tzom": "צום",
    "Fast of": "צום",
    "Erev": "ערב",
    "Lag BaOmer": "ל״ג בעומר",
    "Shmini Atzeret": "שמיני עצרת",
    "Simchat Torah": "שמחת תורה",
}


def hebrew_letters(num: int) -> str:
    """Hebrew letters for num without geresh/gershayim: 15 → 'טו', 119 → 'קיט'."""
    if num <= 0:
        return ""
    result = ""
    rest = num
    # 15 → טו, 16 → טז
    tail = ""
    if num % 100 in (15, 16):
        tail = "טו" if num % 100 == 15 else "טז"
        rest = num - num % 100
    for value, letter in _LETTERS:
        while rest >= value:
            result += letter
            rest -= value
    return result + tail


def range_label(start: int, end: int) -> str:
    """Display label for a chapter range, e.g. 'א - ט' or 'קיט' for a single chapter."""
    if start == end:
        return hebrew_letters(start)
    return f"{hebrew_letters(start)} - {hebrew_letters(end)}"


def format_hebrew_year(year: int) -> str:
    """5785 → ה'תשפ"ה"""
    thousands, remainder = divmod(year, 1000)
    label = (f"{hebrew_letters(thousands)}'" if thousands else "") + hebrew_letters(remainder)
    if len(label) > 1:
        label = f'{label[:-1]}"{label[-1]}'
    return label


def hebrew_date_label(day: int, month_name: str, year: int) -> str:
    return f"{hebrew_letters(day)} {month_name} {format_hebrew_year(year)}"


def translate_month(month: str) -> str:
    return ENG2HEB.get(month, month)


def translate_events(events: list[str] | None) -> list[str]:
    """Translate online observance names into the Hebrew tags the classifier matches."""
    translated = []
    for event in events or []:
        for eng, heb in EVENT_MAP.items():
            if eng in event:
                event = event.replace(eng, heb)
        translated.append(event)
    return translated


def sunday_weekday(gdate: date) -> int:
    """Weekday with Sunday=0 … Shabbos=6 (Python: Monday=0 … Sunday=6)."""
    return (gdate.weekday() + 1) % 7


def is_leap(year: int) -> bool:
    return PYear(year).leap


def get_hebrew_month_name(month: int, year: int) -> str:
    """Map a pyluach month number to its Hebrew name, handling leap years."""
    if month == 12:
        return ADAR_I if is_leap(year) else ADAR
    if month == 13:
        return ADAR_II
    return PY2HEB.get(month, "")


def year_months(year: int) -> list[str]:
    """Month names of a Hebrew year in calendar order (Tishrei first)."""
    adars = [ADAR_I, ADAR_II] if is_leap(year) else [ADAR]
    return (
        [PY2HEB[m] for m in (7, 8, 9, 10, 11)]
        + adars
        + [PY2HEB[m] for m in (1, 2, 3, 4, 5, 6)]
    )


def normalize_month_name(month_name: str, year: int) -> str:
    if is_leap(year) and month_name == ADAR:
        return ADAR_I
    if not is_leap(year) and month_name in (ADAR_I, ADAR_II):
        return ADAR
    return month_name


def month_number(month_name: str, year: int) -> int:
    """Hebrew month name → pyluach month number for that year."""
    name = normalize_month_name(month_name, year)
    if name not in HEBREW_MONTH_INDEX:
        raise ValueError(f"Unknown Hebrew month: {month_name!r}")
    return HEBREW_MONTH_INDEX[name]


def shift_month(year: int, month_name: str, step: int) -> tuple[int, str]:
    """
    Move `step` months forward/backward from (year, month_name).
    The year flips between Elul and Tishrei; Adar variants follow the target year.
    """
    months = year_months(year)
    name = normalize_month_name(month_name, year)
    if name not in months:
        raise ValueError(f"Unknown Hebrew month: {month_name!r}")

    idx = months.index(name) + step
    while idx < 0:
        year -= 1
        months = year_months(year)
        idx += len(months)
    while idx >= len(months):
        idx -= len(months)
        year += 1
        months = year_months(year)
    return year, months[idx]
