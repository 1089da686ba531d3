"""Dollar-amount extraction from search results and tracker cells."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .models import SearchResult

PRICE_RE = re.compile(r"\$ ?(\d{2,4})(?:\s*-\s*\$?\d{2,4})?")

# Amounts below this are usually parking fees or fragment mismatches. Tunable via
# PRICE_FLOOR since it also drops genuine cheap seats.
DEFAULT_PRICE_FLOOR = 30

PREFERRED_RESALE_DOMAIN = "vividseats.com"
IRRELEVANT_RE = re.compile(r"\b(parking|hotels?|restaurants?|faqs?|blog)\b", re.IGNORECASE)

FOLLOW_UP = "Would you like me to open the request form?"


def first_price(text: str, floor: int = DEFAULT_PRICE_FLOOR) -> Optional[int]:
    """First advertised amount in ``text`` at or above ``floor``."""
    if not text:
        return None
    for match in PRICE_RE.finditer(text):
        value = int(match.group(1))
        if value >= floor:
            return value
    return None


def _result_text(result: SearchResult) -> str:
    return f"{result.title} {result.snippet}"


def min_price_across(results: Iterable[SearchResult], floor: int = DEFAULT_PRICE_FLOOR) -> Optional[int]:
    """Lowest qualifying price over all results."""
    best: Optional[int] = None
    for result in results:
        value = first_price(_result_text(result), floor)
        if value is not None and (best is None or value < best):
            best = value
    return best


def resale_first_price(
    results: Iterable[SearchResult],
    floor: int = DEFAULT_PRICE_FLOOR,
    domain: str = PREFERRED_RESALE_DOMAIN,
) -> Optional[int]:
    """Price of the first relevant listing on the preferred resale site.

    Only results linking to ``domain`` count, and any mentioning parking, hotels,
    restaurants, FAQs or blogs are dropped. The first survivor's price is used,
    not the minimum.
    """
    for result in results:
        if domain not in result.link.lower():
            continue
        if IRRELEVANT_RE.search(_result_text(result)):
            continue
        return first_price(_result_text(result), floor)
    return None


def price_summary_message(price: Optional[int]) -> str:
    if price is not None:
        return f"Summary: Lowest starting price around ${price}.\n\n{FOLLOW_UP}"
    return f"Summary: I couldn't confirm a current starting price just yet.\n\n{FOLLOW_UP}"
