# /config/custom_components/tehilim_tracker/tehilim_lib/content.py
"""Chapter texts from Sefaria, with a small built-in fallback."""

from __future__ import annotations

import asyncio
import logging
import re

import aiohttp

from .exceptions import OracleUnavailable
from .helper import hebrew_letters
from .models import PsalmUnit
from .schedules import CHAPTER_COUNT

_LOGGER = logging.getLogger(__name__)

SEFARIA_TEXT_URL = "https://www.sefaria.org/api/texts/Psalms.{chapter}"
DEFAULT_TIMEOUT = 2.0

_TAG_RE = re.compile(r"<[^>]+>")

# Opening verse of a handful of chapters; everything else gets a placeholder
FALLBACK_TEXTS: dict[int, tuple[str, ...]] = {
    1: ("אַשְׁרֵי הָאִישׁ אֲשֶׁר לֹא הָלַךְ בַּעֲצַת רְשָׁעִים וּבְדֶרֶךְ חַטָּאִים לֹא עָמָד וּבְמוֹשַׁב לֵצִים לֹא יָשָׁב׃",),
    20: ("לַמְנַצֵּחַ מִזְמוֹר לְדָוִד׃", "יַעַנְךָ יְהֹוָה בְּיוֹם צָרָה יְשַׂגֶּבְךָ שֵׁם אֱלֹהֵי יַעֲקֹב׃"),
    23: ("מִזְמוֹר לְדָוִד יְהֹוָה רֹעִי לֹא אֶחְסָר׃",),
    121: ("שִׁיר לַמַּעֲלוֹת אֶשָּׂא עֵינַי אֶל הֶהָרִים מֵאַיִן יָבֹא עֶזְרִי׃",),
    130: ("שִׁיר הַמַּעֲלוֹת מִמַּעֲמַקִּים קְרָאתִיךָ יְהֹוָה׃",),
    150: ("הַלְלוּיָהּ הַלְלוּ אֵל בְּקָדְשׁוֹ הַלְלוּהוּ בִּרְקִיעַ עֻזּוֹ׃",),
}


def fallback_unit(chapter: int) -> PsalmUnit:
    lines = FALLBACK_TEXTS.get(chapter) or (f"תהלים פרק {hebrew_letters(chapter)}",)
    return PsalmUnit(unit_index=chapter, lines=lines, is_fallback=True)


def _flatten(text) -> list[str]:
    """Sefaria nests verses in lists for some refs; flatten and strip markup."""
    if isinstance(text, str):
        cleaned = _TAG_RE.sub("", text).strip()
        return [cleaned] if cleaned else []
    lines: list[str] = []
    for item in text or []:
        lines.extend(_flatten(item))
    return lines


class ContentProvider:
    """Fetches chapters one by one; a failed chapter falls back on its own."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None,
        *,
        online: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session
        self._online = online and session is not None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _fetch_chapter(self, chapter: int) -> list[str]:
        if not self._online:
            raise OracleUnavailable("online texts disabled")
        try:
            async with self._session.get(
                SEFARIA_TEXT_URL.format(chapter=chapter),
                params={"context": 0},
                timeout=self._timeout,
            ) as response:
                if response.status != 200:
                    raise OracleUnavailable(f"HTTP {response.status}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            raise OracleUnavailable(str(err) or type(err).__name__) from err

        lines = _flatten(data.get("he") if isinstance(data, dict) else None)
        if not lines:
            raise OracleUnavailable(f"No Hebrew text for chapter {chapter}")
        return lines

    async def fetch_units(self, start: int, end: int) -> list[PsalmUnit]:
        """
        Chapters start..end clamped to 1..150. After the first failed request
        the rest come from the fallback, so a dead network costs one timeout.
        """
        start = max(1, start)
        end = min(CHAPTER_COUNT, end)
        units: list[PsalmUnit] = []
        online = self._online
        for chapter in range(start, end + 1):
            if not online:
                units.append(fallback_unit(chapter))
                continue
            try:
                lines = await self._fetch_chapter(chapter)
            except OracleUnavailable as err:
                _LOGGER.debug("Chapter %d onwards from fallback text (%s)", chapter, err)
                online = False
                units.append(fallback_unit(chapter))
                continue
            units.append(PsalmUnit(unit_index=chapter, lines=tuple(lines)))
        return units
