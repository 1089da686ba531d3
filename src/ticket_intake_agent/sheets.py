"""Google Sheets persistence for captured ticket requests."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, List, Tuple

import structlog
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import UpstreamError
from .models import TicketRequest
from .utils import coerce_int, now_in_timezone

LOGGER = structlog.get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

ROW_COLUMNS = (
    "timestamp",
    "artist_or_event",
    "ticket_qty",
    "name",
    "email",
    "phone",
    "city_or_residence",
    "budget",
    "notes",
)


def format_timestamp(moment: datetime) -> str:
    """US-style local timestamp, e.g. ``10/19/2026, 3:04:05 PM``."""
    hour = moment.hour % 12 or 12
    return (
        f"{moment.month}/{moment.day}/{moment.year}, "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {'AM' if moment.hour < 12 else 'PM'}"
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def build_row(request: TicketRequest, moment: datetime) -> List[Any]:
    """Fixed nine-column row; missing fields become empty strings."""
    qty = coerce_int(request.ticket_qty)
    return [
        format_timestamp(moment),
        _text(request.artist_or_event),
        qty if qty is not None else "",
        _text(request.name),
        _text(request.email),
        _text(request.phone),
        _text(request.city_or_residence),
        _text(request.budget) or _text(request.budget_tier),
        _text(request.notes),
    ]


class SheetsClient:
    """Appends capture rows and reads tracker tabs with a service account."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._service = None

    def _sheets(self):
        if self._service is None:
            credentials = Credentials.from_service_account_info(
                self._settings.service_account_info(),
                scopes=SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def row_for(self, request: TicketRequest) -> List[Any]:
        return build_row(request, now_in_timezone(self._settings.timezone))

    async def append_request(self, request: TicketRequest) -> List[Any]:
        """Append one row for ``request`` and return it."""
        row = self.row_for(request)
        await asyncio.to_thread(self._append_row, row)
        return row

    def _append_row(self, row: List[Any]) -> None:
        LOGGER.info("sheets.append.start", range=self._settings.sheets_range)
        try:
            (
                self._sheets()
                .spreadsheets()
                .values()
                .append(
                    spreadsheetId=self._settings.sheets_id,
                    range=self._settings.sheets_range,
                    valueInputOption="USER_ENTERED",
                    body={"values": [row]},
                )
                .execute()
            )
        except HttpError as exc:
            LOGGER.error("sheets.append.failed", status_code=exc.resp.status)
            raise UpstreamError("sheets", exc.resp.status, _error_body(exc)) from exc
        LOGGER.info("sheets.append.success")

    async def read_tab(self, spreadsheet_id: str, tab: str) -> Tuple[List[str], List[List[Any]]]:
        """Return ``(headers, rows)`` for a whole tab."""
        return await asyncio.to_thread(self._read_tab, spreadsheet_id, tab)

    def _read_tab(self, spreadsheet_id: str, tab: str) -> Tuple[List[str], List[List[Any]]]:
        LOGGER.info("sheets.read.start", tab=tab)
        try:
            response = (
                self._sheets()
                .spreadsheets()
                .values()
                .get(spreadsheetId=spreadsheet_id, range=f"{tab}!A:Z")
                .execute()
            )
        except HttpError as exc:
            LOGGER.error("sheets.read.failed", tab=tab, status_code=exc.resp.status)
            raise UpstreamError("sheets", exc.resp.status, _error_body(exc)) from exc

        values = response.get("values") or []
        if not values:
            return [], []
        headers = [str(cell or "").strip() for cell in values[0]]
        return headers, values[1:]


def _error_body(exc: HttpError) -> str:
    content = exc.content
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content or exc)
