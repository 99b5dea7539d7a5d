"""Utility helpers for cache keys and display-string parsing."""
from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Optional

from .models import ResolveRequest

FINGERPRINT_PREFIX = "resolve:"

_ETA_RE = re.compile(r"(\d+)\s*(min|minute|minutes|hour|hours|hr|hrs)")


def fingerprint(request: ResolveRequest) -> str:
    """Cache key for a resolve request.

    Only product identity, platform, variant and ZIP take part, so requests
    that differ in title, price or attributes share one key.
    """
    ids = request.identifiers
    key_data: dict[str, Any] = {
        "gtin": ids.gtin or ids.upc or ids.ean,
        "asin": ids.asin,
        "platform": request.platform,
        "variant": request.variant or None,
        "zip": request.zip or None,
    }
    digest = hashlib.sha1(json.dumps(key_data, sort_keys=True).encode("utf-8")).hexdigest()
    return f"{FINGERPRINT_PREFIX}{digest}"


def parse_eta_minutes(eta: Any) -> Optional[int]:
    """Turn ``45``, ``"45 min"`` or ``"2 hours"`` into minutes."""
    if isinstance(eta, bool):
        return None
    if isinstance(eta, (int, float)):
        return int(eta)
    if not isinstance(eta, str) or not eta:
        return None
    match = _ETA_RE.search(eta.lower())
    if not match:
        return None
    amount = int(match.group(1))
    if match.group(2).startswith("min"):
        return amount
    return amount * 60
