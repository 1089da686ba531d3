"""Lexical intent checks applied to the latest user message."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from .models import ConversationMessage

CONFIRM_RE = re.compile(
    r"\b(yes|yeah|yep|yup|sure|ok|okay|submit|buy|purchase|book|confirm|proceed|"
    r"go[\s-]?ahead|let'?s do it|sounds good)\b",
    re.IGNORECASE,
)
SUGGEST_RE = re.compile(
    r"(suggest|recommend|popular|upcoming|what.*to do|what.*going on|ideas)",
    re.IGNORECASE,
)
SEARCH_RE = re.compile(
    r"what.*(show|event)|shows?|events?|happening|things to do|prices?|tickets?|"
    r"concert|theat(er|re)|sports|game|popular|upcoming|suggest|recommend",
    re.IGNORECASE,
)
PRICE_RE = re.compile(r"(price|prices|cost|how much)", re.IGNORECASE)

# keyword -> search location
METRO_AREAS = {
    "chicago": "Chicago",
    "chi-town": "Chicago",
    "chitown": "Chicago",
    "evanston": "Evanston",
    "naperville": "Naperville",
    "schaumburg": "Schaumburg",
    "rosemont": "Rosemont",
    "oak park": "Oak Park",
    "aurora": "Aurora",
    "joliet": "Joliet",
    "tinley park": "Tinley Park",
}
METRO_RE = re.compile(
    r"\b(" + "|".join(re.escape(key) for key in METRO_AREAS) + r")\b",
    re.IGNORECASE,
)


def last_user_message(messages: Sequence[ConversationMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content or ""
    return ""


def confirms_purchase(text: str) -> bool:
    """Affirmative reply to the "open the request form?" prompt."""
    return bool(CONFIRM_RE.search(text or ""))


def wants_suggestions(text: str) -> bool:
    return bool(SUGGEST_RE.search(text or ""))


def mentioned_metro(text: str) -> Optional[str]:
    """Return the search location for the first metro keyword in ``text``."""
    match = METRO_RE.search(text or "")
    if not match:
        return None
    return METRO_AREAS[match.group(1).lower()]


def looks_like_search(text: str) -> bool:
    return bool(SEARCH_RE.search(text or ""))


def looks_like_price(text: str) -> bool:
    return bool(PRICE_RE.search(text or ""))
