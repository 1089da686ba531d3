"""Wrapper around the hosted Responses API used for intake conversations."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import httpx
import structlog

from .config import Settings
from .errors import UpstreamError
from .models import ConversationMessage, ToolCall
from .responses import assistant_text, tool_calls

LOGGER = structlog.get_logger(__name__)

CAPTURE_TOOL = "capture_ticket_request"
SEARCH_TOOL = "web_search"

SYSTEM_PROMPT = textwrap.dedent(
    """
    You are a polite, fast, and helpful ticket intake assistant on a public website.

    GOALS
    - Help the user pick or request tickets with minimum back-and-forth.
    - Ask only one short question at a time for missing details, in this order:
      1. artist or event
      2. number of tickets
      3. city and date (or date range)
      4. budget
    - When the user confirms the details, CALL capture_ticket_request immediately.
    - For ideas, dates, or prices, CALL web_search; the server replies with a one-line price summary.

    DATA TO CAPTURE
    - artist_or_event (required), e.g. "Jonas Brothers"
    - ticket_qty (required, integer)
    - city_or_residence, date_or_date_range, budget, notes (optional)

    STYLE
    - Short, friendly replies. No links.
    - Never ask for a name, email address, or phone number in chat; the request form collects those.
    - After they confirm the summary, CALL capture_ticket_request instead of asking again.
    """
).strip()

TOOLS: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": CAPTURE_TOOL,
        "description": "Finalize a ticket request and log it to the request sheet.",
        "parameters": {
            "type": "object",
            "properties": {
                "artist_or_event": {"type": "string"},
                "ticket_qty": {"type": "integer"},
                "city_or_residence": {"type": "string"},
                "date_or_date_range": {"type": "string"},
                "budget": {"type": "string"},
                "notes": {"type": "string"},
            },
            "required": ["artist_or_event", "ticket_qty"],
        },
    },
    {
        "type": "function",
        "name": SEARCH_TOOL,
        "description": "Search the web for events, venues, dates, ticket info, or prices.",
        "parameters": {
            "type": "object",
            "properties": {
                "q": {"type": "string"},
                "location": {"type": "string"},
            },
            "required": ["q"],
        },
    },
]


@dataclass
class CompletionResult:
    """Tool calls and free text pulled out of a model response."""

    tool_calls: list[ToolCall] = field(default_factory=list)
    text: str = ""

    def first_call(self, *names: str) -> Optional[ToolCall]:
        """First tool call whose name is one of ``names``."""
        for call in self.tool_calls:
            if call.name in names:
                return call
        return None


class CompletionClient:
    """Sends the conversation to the completion service and parses the reply."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    def build_payload(self, messages: Sequence[ConversationMessage]) -> dict[str, Any]:
        return {
            "model": self._settings.openai_model,
            "temperature": self._settings.openai_temperature,
            "input": [
                {"role": "system", "content": SYSTEM_PROMPT},
                *(message.model_dump() for message in messages),
            ],
            "tools": TOOLS,
            "tool_choice": "auto",
        }

    async def complete(self, messages: Sequence[ConversationMessage]) -> CompletionResult:
        """Run one completion round-trip; non-2xx responses raise ``UpstreamError``."""
        payload = self.build_payload(messages)
        headers = {"Authorization": f"Bearer {self._settings.openai_api_key.get_secret_value()}"}

        LOGGER.info(
            "completion.request.start",
            model=self._settings.openai_model,
            turns=len(messages),
        )
        async with httpx.AsyncClient(
            base_url=self._settings.openai_api_base,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post("/responses", json=payload, headers=headers)

        if not response.is_success:
            LOGGER.error(
                "completion.request.failed",
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamError("completion", response.status_code, response.text)

        data = response.json()
        result = CompletionResult(tool_calls=tool_calls(data), text=assistant_text(data))
        LOGGER.info(
            "completion.request.success",
            tool_calls=[call.name for call in result.tool_calls],
            text_length=len(result.text),
        )
        return result
