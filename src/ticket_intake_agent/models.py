"""Pydantic models exchanged between the endpoint, the router and the clients."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConversationMessage(BaseModel):
    """Single chat turn supplied by the caller."""

    role: Literal["user", "assistant", "system"]
    content: str = ""


class TicketRequest(BaseModel):
    """Captured ticket request, from the request form or a model tool call."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    artist_or_event: Optional[str] = None
    ticket_qty: Optional[Any] = None
    city_or_residence: Optional[str] = None
    date_or_date_range: Optional[str] = None
    budget: Optional[str] = None
    budget_tier: Optional[str] = None
    notes: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class SearchResult(BaseModel):
    """Ranked organic web-search hit."""

    rank: int = Field(ge=1)
    title: str = ""
    link: str = ""
    snippet: str = ""


class ToolCall(BaseModel):
    """Function invocation requested by the completion service."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    call_id: Optional[str] = None


class ChatPayload(BaseModel):
    """POST body accepted by the chat endpoint."""

    model_config = ConfigDict(extra="ignore")

    messages: List[ConversationMessage] = Field(default_factory=list)
    direct_capture: bool = False
    capture: Optional[Dict[str, Any]] = None


class ChatReply(BaseModel):
    """Single response produced for every POST."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    captured: Optional[Dict[str, Any]] = None
    open_form: Optional[bool] = Field(default=None, alias="openForm")
    results: Optional[List[SearchResult]] = None
    note: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        """JSON body containing only the fields the branch set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
