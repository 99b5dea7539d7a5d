"""Resolution pipeline: cache, product lookup, local offers, backend fallback."""
from __future__ import annotations

import asyncio
import copy
import logging
from time import perf_counter
from typing import Any, Dict, List, Optional

from .backend_proxy import BackendProxyAdapter
from .cache import ResolutionCache
from .entities import Offer, Product, Store, isoformat, utc_now
from .guards import GuardConfig, apply_guard_filters
from .models import ResolvedOffer, ResolveRequest, ResolveResponse
from .ranking import prioritize_offers
from .repository import Repository
from .utils import fingerprint

logger = logging.getLogger(__name__)

UNKNOWN_BRAND = "Unknown"
UNKNOWN_TITLE = "Unknown Product"


class ResolutionError(Exception):
    """Unexpected failure in the mandatory resolution path."""


def format_local_offer(offer: Offer, store: Store) -> ResolvedOffer:
    return ResolvedOffer(
        id=offer.id,
        storeName=store.name,
        storeChain=store.chain,
        address=store.address,
        distance=offer.distance or "0 mi",
        distanceMiles=offer.distance_miles or 0,
        availabilityType=offer.availability_type,
        eta=offer.eta or "Unknown",
        etaMinutes=offer.eta_minutes or 0,
        price=offer.price,
        currency=offer.currency or "USD",
        lastSeen=isoformat(offer.last_seen),
        deepLink=offer.deep_link,
        inStock=bool(offer.in_stock),
        stockLevel=offer.stock_level,
    )


def ineligible_response() -> Dict[str, Any]:
    return ResolveResponse(eligible=False, offers=[], cached=False, timestamp=isoformat(utc_now())).model_dump()


def _audit_payload(request: ResolveRequest) -> Dict[str, Any]:
    payload = request.model_dump()
    payload["identifiers"] = request.identifiers.present()
    return payload


class Resolver:
    def __init__(
        self,
        repository: Repository,
        cache: ResolutionCache,
        backend: BackendProxyAdapter | None = None,
        guard_config: GuardConfig | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.backend = backend
        self.guard_config = guard_config or GuardConfig()

    async def resolve(self, request: ResolveRequest, user_agent: str | None = None) -> Dict[str, Any]:
        key = fingerprint(request)
        try:
            cache_start = perf_counter()
            cached = self.cache.get(key)
            if cached is not None:
                total_ms = (perf_counter() - cache_start) * 1000
                logger.info("timing: total=%.2fms cache_hit=1 key=%s", total_ms, key)
                return {**copy.deepcopy(cached.value), "cached": True}
            return await self._resolve_uncached(request, key, user_agent)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.exception("resolution failed key=%s", key)
            try:
                await asyncio.to_thread(
                    self.repository.create_resolve_request,
                    _audit_payload(request),
                    {"error": message},
                    False,
                    user_agent,
                )
            except Exception:
                logger.exception("failure audit record could not be written key=%s", key)
            raise ResolutionError(message) from exc

    async def _lookup_product(self, request: ResolveRequest) -> Product:
        identifiers = request.identifiers.present()
        product = await asyncio.to_thread(self.repository.get_product_by_identifiers, identifiers)
        if product is not None:
            return product
        return await asyncio.to_thread(
            self.repository.create_product,
            **identifiers,
            brand=request.brand or UNKNOWN_BRAND,
            title=request.title or UNKNOWN_TITLE,
            variant=request.variant,
            price=request.price,
            currency=request.currency or "USD",
            platform=request.platform,
            url=request.url,
            attributes=dict(request.attributes or {}),
        )

    async def _format_offers(self, offers: List[Offer]) -> List[ResolvedOffer]:
        formatted: List[ResolvedOffer] = []
        for offer in offers:
            store: Optional[Store] = await asyncio.to_thread(self.repository.get_store, offer.store_id)
            if store is None:
                logger.warning("offer %s references missing store %s; dropped", offer.id, offer.store_id)
                continue
            formatted.append(format_local_offer(offer, store))
        return formatted

    async def _resolve_uncached(self, request: ResolveRequest, key: str, user_agent: str | None) -> Dict[str, Any]:
        t0 = perf_counter()
        product = await self._lookup_product(request)
        t1 = perf_counter()
        all_offers = await asyncio.to_thread(self.repository.get_offers_by_product, product.id)
        eligible = apply_guard_filters(all_offers, self.guard_config)
        t2 = perf_counter()

        response: Optional[Dict[str, Any]] = None
        source = "local"
        offers = await self._format_offers(eligible) if eligible else []
        if offers:
            response = ResolveResponse(
                eligible=True,
                offers=prioritize_offers(offers),
                cached=False,
                timestamp=isoformat(utc_now()),
            ).model_dump(exclude_none=True)
        elif self.backend is not None:
            source = "backend"
            response = await self.backend.resolve(request)
        t3 = perf_counter()

        if response is None:
            source = "none"
            response = ineligible_response()
        else:
            self.cache.set(key, copy.deepcopy(response))

        await asyncio.to_thread(
            self.repository.create_resolve_request,
            _audit_payload(request),
            copy.deepcopy(response),
            True,
            user_agent,
        )
        logger.info(
            "timing: total=%.2fms lookup=%.2fms offers=%.2fms respond=%.2fms cache_hit=0 key=%s source=%s offers=%s",
            (t3 - t0) * 1000,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            (t3 - t2) * 1000,
            key,
            source,
            len(response["offers"]),
        )
        return response
