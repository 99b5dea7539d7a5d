"""Key-value repository for products, stores, offers and resolve audit records."""
from __future__ import annotations

import dataclasses
import logging
import threading
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .entities import (
    IDENTIFIER_FIELDS,
    Offer,
    Product,
    ResolveRequestRecord,
    Store,
    utc_now,
)

logger = logging.getLogger(__name__)


class Repository(Protocol):
    def get_product(self, product_id: str) -> Optional[Product]: ...

    def get_product_by_identifiers(self, identifiers: Mapping[str, str]) -> Optional[Product]: ...

    def create_product(self, **fields: Any) -> Product: ...

    def get_store(self, store_id: str) -> Optional[Store]: ...

    def get_stores_by_chain(self, chain: str) -> List[Store]: ...

    def create_store(self, **fields: Any) -> Store: ...

    def get_offer(self, offer_id: str) -> Optional[Offer]: ...

    def get_offers_by_product(self, product_id: str) -> List[Offer]: ...

    def get_offers_by_store(self, store_id: str) -> List[Offer]: ...

    def create_offer(self, **fields: Any) -> Offer: ...

    def update_offer_stock(self, offer_id: str, in_stock: bool, stock_level: int | None = None) -> Optional[Offer]: ...

    def create_resolve_request(
        self,
        request: Mapping[str, Any],
        response: Dict[str, Any] | None = None,
        success: bool = False,
        user_agent: str | None = None,
    ) -> ResolveRequestRecord: ...

    def get_recent_resolve_requests(self, limit: int = 50) -> List[ResolveRequestRecord]: ...


class InMemoryRepository:
    """Dict-backed repository; each call holds the lock for one map operation."""

    def __init__(self) -> None:
        self._products: Dict[str, Product] = {}
        self._stores: Dict[str, Store] = {}
        self._offers: Dict[str, Offer] = {}
        self._requests: List[ResolveRequestRecord] = []
        self._lock = threading.Lock()

    # Products

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._lock:
            return self._products.get(product_id)

    def get_product_by_identifiers(self, identifiers: Mapping[str, str]) -> Optional[Product]:
        wanted = {name: value for name, value in identifiers.items() if name in IDENTIFIER_FIELDS and value}
        if not wanted:
            return None
        with self._lock:
            for product in self._products.values():
                if any(getattr(product, name) == value for name, value in wanted.items()):
                    return product
        return None

    def create_product(self, **fields: Any) -> Product:
        product = Product(**fields)
        with self._lock:
            self._products[product.id] = product
        logger.debug("created product id=%s title=%r", product.id, product.title)
        return product

    # Stores

    def get_store(self, store_id: str) -> Optional[Store]:
        with self._lock:
            return self._stores.get(store_id)

    def get_stores_by_chain(self, chain: str) -> List[Store]:
        with self._lock:
            return [store for store in self._stores.values() if store.chain == chain]

    def create_store(self, **fields: Any) -> Store:
        store = Store(**fields)
        with self._lock:
            self._stores[store.id] = store
        return store

    # Offers

    def get_offer(self, offer_id: str) -> Optional[Offer]:
        with self._lock:
            return self._offers.get(offer_id)

    def get_offers_by_product(self, product_id: str) -> List[Offer]:
        with self._lock:
            return [offer for offer in self._offers.values() if offer.product_id == product_id]

    def get_offers_by_store(self, store_id: str) -> List[Offer]:
        with self._lock:
            return [offer for offer in self._offers.values() if offer.store_id == store_id]

    def create_offer(self, **fields: Any) -> Offer:
        offer = Offer(**fields)
        with self._lock:
            self._offers[offer.id] = offer
        return offer

    def update_offer_stock(self, offer_id: str, in_stock: bool, stock_level: int | None = None) -> Optional[Offer]:
        # Offers are snapshots: swap in a new one rather than mutating.
        with self._lock:
            offer = self._offers.get(offer_id)
            if offer is None:
                return None
            now = utc_now()
            updated = dataclasses.replace(
                offer,
                in_stock=in_stock,
                stock_level=stock_level if stock_level is not None else offer.stock_level,
                last_seen=now,
                updated_at=now,
            )
            self._offers[offer_id] = updated
        return updated

    # Resolve audit records

    def create_resolve_request(
        self,
        request: Mapping[str, Any],
        response: Dict[str, Any] | None = None,
        success: bool = False,
        user_agent: str | None = None,
    ) -> ResolveRequestRecord:
        record = ResolveRequestRecord(
            identifiers=dict(request.get("identifiers") or {}),
            platform=request.get("platform") or "",
            url=request.get("url") or "",
            brand=request.get("brand"),
            title=request.get("title"),
            variant=request.get("variant"),
            price=request.get("price"),
            currency=request.get("currency"),
            attributes=dict(request.get("attributes") or {}),
            zip_code=request.get("zip"),
            user_agent=user_agent,
            response=response,
            success=success,
        )
        with self._lock:
            self._requests.append(record)
        return record

    def get_recent_resolve_requests(self, limit: int = 50) -> List[ResolveRequestRecord]:
        with self._lock:
            ordered = list(enumerate(self._requests))
        ordered.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        return [record for _, record in ordered[:limit]]


@lru_cache(maxsize=1)
def get_repository() -> InMemoryRepository:
    return InMemoryRepository()
