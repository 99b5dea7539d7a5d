"""Fallback resolution against the external inventory backend.

The adapter is only consulted when no local offer survives the guards. It
tries a ZIP-based lookup first and a lat/lon radius lookup second, for each
candidate product id in turn, and normalizes whatever comes back into the
same offer shape local resolution produces. Every failure is downgraded to
``None`` so the caller can answer "not eligible" instead of erroring.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .config import Settings
from .entities import DELIVERY, PICKUP, ProxyOffer, isoformat, utc_now
from .geo import km_to_miles, zip_to_lat_lon
from .guards import GuardConfig, apply_guard_filters
from .models import ResolvedOffer, ResolveRequest, ResolveResponse
from .ranking import prioritize_offers
from .utils import parse_eta_minutes

logger = logging.getLogger(__name__)

RESOLVE_PATH = "/api/resolve"
OFFERS_PATH = "/v1/offers"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def candidate_product_ids(request: ResolveRequest) -> List[str]:
    """Product ids to try upstream, GTIN family before ASIN, composite form first."""
    ids = request.identifiers
    candidates: List[str] = []
    gtin = ids.gtin or ids.upc or ids.ean
    if gtin:
        candidates.extend([f"gtin::{gtin}", gtin])
    if ids.asin:
        candidates.extend([f"asin::{ids.asin}", ids.asin])
    return candidates


def _text(value: Any, default: str | None) -> str | None:
    if value is None or value == "":
        return default
    return value if isinstance(value, str) else str(value)


def _format_price(raw: Dict[str, Any]) -> str:
    cents = raw.get("price_cents")
    if _is_number(cents):
        return f"${cents / 100:.2f}"
    price = raw.get("price")
    if _is_number(price):
        return f"${price:.2f}"
    return _text(price, "")


def _trust_score(confidence: Any) -> int:
    if not _is_number(confidence):
        confidence = 1
    clamped = max(0.0, min(1.0, float(confidence)))
    return int(math.floor(clamped * 100 + 0.5))


def normalize_backend_offers(raw_offers: List[Any]) -> List[ProxyOffer]:
    """Expand each upstream offer into a pickup and/or delivery entry."""
    normalized: List[ProxyOffer] = []
    for idx, raw in enumerate(raw_offers):
        if not isinstance(raw, dict):
            continue
        store = raw.get("store") if isinstance(raw.get("store"), dict) else {}
        distance_km = raw.get("distance_km")
        distance_miles = km_to_miles(distance_km) if _is_number(distance_km) else 0.0
        last_checked = raw.get("last_checked")
        common = dict(
            store_name=_text(store.get("name"), "Unknown"),
            store_chain=_text(store.get("retailer") or store.get("chain"), "unknown"),
            price=_format_price(raw),
            distance=f"{distance_miles:.1f} mi" if distance_miles else "0 mi",
            distance_miles=float(distance_miles or 0),
            last_seen=last_checked if isinstance(last_checked, str) and last_checked else isoformat(utc_now()),
            deep_link=_text(raw.get("deep_link") or raw.get("url"), None),
            trust_score=_trust_score(raw.get("confidence")),
        )
        for availability, suffix in ((PICKUP, "p"), (DELIVERY, "d")):
            channel = raw.get(availability)
            if not isinstance(channel, dict) or not channel.get("available"):
                continue
            eta_min = parse_eta_minutes(channel.get("eta_min"))
            normalized.append(
                ProxyOffer(
                    id=str(raw.get("id") or f"backend-{idx}-{suffix}"),
                    availability_type=availability,
                    eta=f"{eta_min} min" if eta_min is not None else "Unknown",
                    eta_minutes=eta_min if eta_min is not None else 0,
                    **common,
                )
            )
    return normalized


def to_resolved_offer(offer: ProxyOffer) -> ResolvedOffer:
    # margin, trust_score and is_eligible stay behind.
    return ResolvedOffer(
        id=offer.id,
        storeName=offer.store_name,
        storeChain=offer.store_chain,
        address=offer.address,
        distance=offer.distance,
        distanceMiles=offer.distance_miles,
        availabilityType=offer.availability_type,
        eta=offer.eta,
        etaMinutes=offer.eta_minutes,
        price=offer.price,
        currency=offer.currency,
        lastSeen=offer.last_seen,
        deepLink=offer.deep_link,
        inStock=offer.in_stock,
    )


class BackendProxyAdapter:
    """Client for the upstream inventory service."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout: float = 5.0,
        radius_km: float = 25,
        guard_config: GuardConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.radius_km = radius_km
        self.guard_config = guard_config or GuardConfig()
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackendProxyAdapter":
        return cls(
            settings.backend_base,
            api_key=settings.backend_api_key,
            timeout=settings.backend_timeout_seconds,
            radius_km=settings.backend_radius_km,
            guard_config=GuardConfig.from_settings(settings),
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def _post_offers(
        self,
        client: httpx.AsyncClient,
        path: str,
        body: Dict[str, Any],
        headers: Dict[str, str] | None = None,
    ) -> List[Any]:
        try:
            resp = await client.post(path, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("backend %s failed for product_id=%s: %s", path, body["product_id"], exc)
            return []
        if not resp.is_success:
            logger.debug("backend %s product_id=%s status=%s", path, body["product_id"], resp.status_code)
            return []
        try:
            data = resp.json()
        except ValueError:
            logger.warning("backend %s returned non-JSON body", path)
            return []
        offers = data.get("offers") if isinstance(data, dict) else None
        return offers if isinstance(offers, list) else []

    async def fetch_raw_offers(self, request: ResolveRequest) -> List[Any]:
        candidates = candidate_product_ids(request)
        if not candidates:
            return []
        location = zip_to_lat_lon(request.zip)
        if location is None:
            logger.debug("no coordinates for zip=%r; skipping backend", request.zip)
            return []
        lat, lon = location

        async with self._client() as client:
            for product_id in candidates:
                offers = await self._post_offers(client, RESOLVE_PATH, {"product_id": product_id, "zip": request.zip})
                if offers:
                    return offers

            headers = {"X-API-Key": self.api_key} if self.api_key else None
            for product_id in candidates:
                body = {"product_id": product_id, "lat": lat, "lon": lon, "radius_km": self.radius_km}
                offers = await self._post_offers(client, OFFERS_PATH, body, headers=headers)
                if offers:
                    return offers
        return []

    async def resolve(self, request: ResolveRequest) -> Optional[Dict[str, Any]]:
        """Return a success payload built from upstream offers, or ``None``."""
        try:
            raw_offers = await self.fetch_raw_offers(request)
            if not raw_offers:
                return None
            normalized = normalize_backend_offers(raw_offers)
            # Proxy offers carry assumed margin, trust and eligibility.
            eligible = apply_guard_filters(normalized, self.guard_config)
            if not eligible:
                logger.info("backend returned %s offers, none passed guards", len(normalized))
                return None
            resolved: List[ResolvedOffer] = []
            for offer in eligible:
                try:
                    resolved.append(to_resolved_offer(offer))
                except ValidationError as exc:
                    logger.warning("dropping malformed backend offer %s: %s", offer.id, exc)
            if not resolved:
                return None
            offers = prioritize_offers(resolved)
            response = ResolveResponse(
                eligible=True,
                offers=offers,
                cached=False,
                timestamp=isoformat(utc_now()),
            )
            return response.model_dump(exclude_none=True)
        except Exception:
            logger.exception("backend proxy resolution failed")
            return None
