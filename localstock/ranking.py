"""Offer prioritization: pickup first, then fastest, then cheapest."""
from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from .entities import PICKUP
from .models import ResolvedOffer

_PRICE_NOISE_RE = re.compile(r"[^0-9.\-]")


def parse_price(display: str | None) -> float:
    """Parse a display price such as ``"$1,234.50"`` into ``1234.5``.

    Unparseable prices compare as infinitely expensive so they sort last.
    """
    cleaned = _PRICE_NOISE_RE.sub("", display or "")
    try:
        return float(cleaned)
    except ValueError:
        return float("inf")


def _sort_key(offer: ResolvedOffer) -> Tuple[int, int, float]:
    return (
        0 if offer.availabilityType == PICKUP else 1,
        offer.etaMinutes,
        parse_price(offer.price),
    )


def prioritize_offers(offers: Iterable[ResolvedOffer]) -> List[ResolvedOffer]:
    # sorted() is stable, so full ties keep their input order.
    return sorted(offers, key=_sort_key)
