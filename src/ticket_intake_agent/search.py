"""Serper web-search client biased toward ticket resale sites."""

from __future__ import annotations

import re
from typing import Any, List, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings
from .errors import UpstreamError
from .models import SearchResult

LOGGER = structlog.get_logger(__name__)

TICKET_WORD_RE = re.compile(r"\btickets?\b", re.IGNORECASE)
RESALE_SITE_FILTER = "(site:vividseats.com OR site:ticketmaster.com)"


def augment_query(query: str, location: Optional[str] = None, prefer_tickets: bool = True) -> str:
    """Add the ticket keyword, the location and the resale-site filter to ``query``."""
    final = (query or "").strip()
    if not TICKET_WORD_RE.search(final):
        final = f"{final} tickets"
    location = str(location or "").strip()
    if location:
        final = f"{final} {location}"
    if prefer_tickets:
        final = f"{final} {RESALE_SITE_FILTER}"
    return final


def parse_results(data: dict[str, Any]) -> List[SearchResult]:
    """Map Serper ``organic`` hits to ranked results."""
    return [
        SearchResult(
            rank=index,
            title=str(item.get("title") or ""),
            link=str(item.get("link") or ""),
            snippet=str(item.get("snippet") or ""),
        )
        for index, item in enumerate(data.get("organic") or [], start=1)
    ]


class SearchClient:
    """Issues web searches; transient failures are retried a bounded number of times."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    async def search(
        self,
        query: str,
        location: Optional[str] = None,
        *,
        prefer_tickets: bool = True,
        max_results: Optional[int] = None,
    ) -> List[SearchResult]:
        payload = {
            "q": augment_query(query, location, prefer_tickets),
            "num": max_results or self._settings.search_max_results,
        }
        LOGGER.info("search.request.start", q=payload["q"], num=payload["num"])
        data = await self._invoke_search(payload)
        results = parse_results(data)
        LOGGER.info("search.request.success", results=len(results))
        return results

    async def _invoke_search(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Execute the search call with retry behaviour."""
        async for attempt in AsyncRetrying(
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            stop=stop_after_attempt(max(1, self._settings.search_attempts)),
            retry=retry_if_exception_type((httpx.HTTPError, UpstreamError)),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    timeout=self._settings.timeout_seconds,
                    transport=self._transport,
                ) as client:
                    response = await client.post(
                        self._settings.serper_url,
                        json=payload,
                        headers={"X-API-KEY": self._settings.serper_api_key.get_secret_value()},
                    )
                if not response.is_success:
                    LOGGER.warning(
                        "search.request.failed",
                        status_code=response.status_code,
                        attempt=attempt.retry_state.attempt_number,
                    )
                    raise UpstreamError("search", response.status_code, response.text)
                return response.json()
        raise RuntimeError("Search invocation failed")  # safety net
