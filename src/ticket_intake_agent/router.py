"""Per-request dispatch between the form shortcut, the model and search."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import structlog

from .completion import CAPTURE_TOOL, SEARCH_TOOL, CompletionClient
from .config import Settings
from .intents import (
    confirms_purchase,
    last_user_message,
    looks_like_price,
    looks_like_search,
    mentioned_metro,
    wants_suggestions,
)
from .models import ChatPayload, ChatReply, SearchResult, TicketRequest, ToolCall
from .pricing import min_price_across, price_summary_message, resale_first_price
from .search import SearchClient
from .sheets import SheetsClient
from .tracker import PriceTracker

LOGGER = structlog.get_logger(__name__)

DIRECT_CAPTURE_MESSAGE = "Saved your request. We'll follow up soon!"
TOOL_CAPTURE_MESSAGE = "Thanks! I saved your request and we'll follow up shortly to confirm details."
OPEN_FORM_MESSAGE = "Great! I'll open the request form so you can finish your request."
SUGGESTIONS_FOLLOW_UP = "Want me to start a request for any of these?"
EMPTY_REPLY_MESSAGE = (
    "Great! Which artist or event are you looking for, and how many tickets do you need? "
    "And what's your budget?"
)
SUGGESTION_QUERY = "popular upcoming concerts and events"
FALLBACK_NOTE = "fallback_search"

ARTIST_NOISE_RE = re.compile(r"\b(tickets?|prices?)\b", re.IGNORECASE)


class TicketIntakeService:
    """Turns one chat payload into exactly one reply."""

    def __init__(
        self,
        settings: Settings,
        completion: CompletionClient,
        search: SearchClient,
        sheets: SheetsClient,
        tracker: PriceTracker,
    ):
        self._settings = settings
        self._completion = completion
        self._search = search
        self._sheets = sheets
        self._tracker = tracker

    @classmethod
    def from_settings(cls, settings: Settings) -> "TicketIntakeService":
        sheets = SheetsClient(settings)
        return cls(
            settings=settings,
            completion=CompletionClient(settings),
            search=SearchClient(settings),
            sheets=sheets,
            tracker=PriceTracker(sheets, settings),
        )

    async def handle(self, payload: ChatPayload) -> ChatReply:
        if payload.direct_capture and payload.capture is not None:
            LOGGER.info("router.branch", branch="direct_capture")
            return await self._capture(payload.capture, DIRECT_CAPTURE_MESSAGE)

        last_user = last_user_message(payload.messages)

        if confirms_purchase(last_user):
            LOGGER.info("router.branch", branch="open_form")
            return ChatReply(message=OPEN_FORM_MESSAGE, open_form=True)

        city = mentioned_metro(last_user)
        if city and wants_suggestions(last_user):
            LOGGER.info("router.branch", branch="suggestions", city=city)
            return await self._suggest(city)

        result = await self._completion.complete(payload.messages)

        capture = result.first_call(CAPTURE_TOOL)
        if capture is not None:
            LOGGER.info("router.branch", branch="tool_capture", call_id=capture.call_id)
            return await self._capture(capture.arguments, TOOL_CAPTURE_MESSAGE)

        search = result.first_call(SEARCH_TOOL)
        if search is not None:
            LOGGER.info("router.branch", branch="tool_search", call_id=search.call_id)
            return await self._tool_search(search, last_user)

        if looks_like_search(last_user):
            LOGGER.info("router.branch", branch="fallback_search")
            results = await self._search.search(last_user, self._settings.default_city)
            price = min_price_across(results, self._settings.price_floor)
            return ChatReply(message=price_summary_message(price), note=FALLBACK_NOTE)

        if result.text:
            LOGGER.info("router.branch", branch="model_reply")
            return ChatReply(message=result.text)
        LOGGER.info("router.branch", branch="empty_reply")
        return ChatReply(message=EMPTY_REPLY_MESSAGE, captured=None)

    async def _capture(self, fields: Dict[str, Any], message: str) -> ChatReply:
        request = TicketRequest.model_validate(fields)
        await self._sheets.append_request(request)
        return ChatReply(message=message, captured=dict(fields))

    async def _suggest(self, city: str) -> ChatReply:
        lines = await self._tracker.suggestions(city)
        if lines:
            summary = "\n".join(f"• {line}" for line in lines)
            return ChatReply(message=f"{summary}\n\n{SUGGESTIONS_FOLLOW_UP}")
        results = await self._search.search(SUGGESTION_QUERY, city)
        price = min_price_across(results, self._settings.price_floor)
        return ChatReply(message=price_summary_message(price), results=results)

    async def _tool_search(self, call: ToolCall, last_user: str) -> ChatReply:
        query = str(call.arguments.get("q") or last_user)
        location = call.arguments.get("location")
        location = str(location) if location not in (None, "") else None

        artist_guess = ARTIST_NOISE_RE.sub(" ", query).strip()
        price = await self._tracker.price_for_artist(artist_guess)
        results: List[SearchResult] = []
        if price is None:
            results = await self._search.search(query, location)
            price = self._price_from_results(results, last_user)
        return ChatReply(message=price_summary_message(price), results=results)

    def _price_from_results(self, results: List[SearchResult], last_user: str) -> Optional[int]:
        floor = self._settings.price_floor
        if looks_like_price(last_user):
            price = resale_first_price(results, floor)
            if price is not None:
                return price
        return min_price_across(results, floor)
