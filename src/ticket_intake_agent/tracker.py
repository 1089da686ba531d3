"""Curated price tracker tab used before falling back to web search."""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

import structlog
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import UpstreamError
from .pricing import DEFAULT_PRICE_FLOOR, first_price
from .sheets import SheetsClient
from .utils import normalise_whitespace

LOGGER = structlog.get_logger(__name__)

ARTIST_HEADERS = ("artist_or_event", "artist", "event", "title")
CITY_HEADERS = ("city", "location")
DATE_HEADERS = ("date", "when")
PRICE_HEADERS = ("price", "starting_price", "from", "lowest", "price #1")


def index_by(headers: Sequence[str], *candidates: str) -> int:
    """Column index of the first candidate matching a header exactly or as a substring."""
    lowered = [header.lower() for header in headers]
    for candidate in candidates:
        for idx, header in enumerate(lowered):
            if header == candidate or candidate in header:
                return idx
    return -1


def _cell(row: Sequence[Any], idx: int) -> str:
    if 0 <= idx < len(row):
        return normalise_whitespace(str(row[idx] or ""))
    return ""


def _row_price(row: Sequence[Any], price_idx: int, floor: int) -> Optional[int]:
    if price_idx != -1:
        price = first_price(_cell(row, price_idx), floor)
        if price is not None:
            return price
    for cell in row:
        price = first_price(str(cell or ""), floor)
        if price is not None:
            return price
    return None


def price_for_artist(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    artist: str,
    floor: int = DEFAULT_PRICE_FLOOR,
) -> Optional[int]:
    """Lowest tracked price across rows naming ``artist``."""
    artist = (artist or "").strip().lower()
    if not artist or not headers:
        return None
    artist_idx = index_by(headers, *ARTIST_HEADERS)
    if artist_idx == -1:
        return None
    price_idx = index_by(headers, *PRICE_HEADERS)

    best: Optional[int] = None
    for row in rows:
        name = _cell(row, artist_idx)
        if not name or artist not in name.lower():
            continue
        price = _row_price(row, price_idx, floor)
        if price is not None and (best is None or price < best):
            best = price
    return best


def suggestions(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    city: Optional[str],
    limit: int = 5,
    floor: int = DEFAULT_PRICE_FLOOR,
) -> List[str]:
    """Display lines for tracked events; rows tagged with another city are skipped."""
    if not headers:
        return []
    artist_idx = index_by(headers, *ARTIST_HEADERS)
    if artist_idx == -1:
        return []
    city_idx = index_by(headers, *CITY_HEADERS)
    date_idx = index_by(headers, *DATE_HEADERS)
    price_idx = index_by(headers, *PRICE_HEADERS)

    lines: List[str] = []
    for row in rows:
        name = _cell(row, artist_idx)
        if not name:
            continue
        row_city = _cell(row, city_idx)
        if row_city and city and city.lower() not in row_city.lower():
            continue
        when = _cell(row, date_idx)
        price = _row_price(row, price_idx, floor)
        line = name
        if when:
            line += f" ({when})"
        if price is not None:
            line += f": Starting at ${price}"
        lines.append(line)
        if len(lines) >= limit:
            break
    return lines


class PriceTracker:
    """Reads the tracker tab on demand; no caching between requests."""

    def __init__(self, sheets: SheetsClient, settings: Settings):
        self._sheets = sheets
        self._settings = settings

    async def _load(self) -> tuple[List[str], List[List[Any]]]:
        if not self._settings.tracker_enabled:
            return [], []
        try:
            return await self._sheets.read_tab(
                self._settings.tracker_spreadsheet_id,
                self._settings.tracker_tab,
            )
        except (UpstreamError, HttpError) as exc:
            LOGGER.warning("tracker.read_failed", tab=self._settings.tracker_tab, error=str(exc))
            return [], []

    async def price_for_artist(self, artist: str) -> Optional[int]:
        if not artist:
            return None
        headers, rows = await self._load()
        price = price_for_artist(headers, rows, artist, self._settings.price_floor)
        LOGGER.info("tracker.price_lookup", artist=artist, price=price)
        return price

    async def suggestions(self, city: Optional[str], limit: int = 5) -> List[str]:
        headers, rows = await self._load()
        lines = suggestions(headers, rows, city, limit, self._settings.price_floor)
        LOGGER.info("tracker.suggestions", city=city, count=len(lines))
        return lines
