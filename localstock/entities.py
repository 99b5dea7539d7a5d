"""Internal records kept by the repository and passed through the resolver.

Two offer shapes reach the guard filter:

* :class:`Offer` is a stored snapshot tied to a real :class:`Store`.
* :class:`ProxyOffer` comes out of the backend proxy normalization. It has no
  store reference and carries the adapter-side guard assumptions (constant
  margin, eligibility and stock) explicitly instead of as silent defaults.

Both expose the attribute names the guard predicate reads.
"""
from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal

PICKUP = "pickup"
DELIVERY = "delivery"
IDENTIFIER_FIELDS = ("gtin", "upc", "ean", "asin", "sku")

PROXY_MARGIN = 100


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """Render a datetime the way JavaScript's ``toISOString`` does."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Product:
    title: str
    platform: str
    url: str
    gtin: str | None = None
    upc: str | None = None
    ean: str | None = None
    asin: str | None = None
    sku: str | None = None
    brand: str | None = None
    variant: str | None = None
    price: str | None = None
    currency: str | None = None
    images: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class Store:
    name: str
    chain: str
    address: str
    city: str
    state: str
    zip_code: str
    latitude: float | None = None
    longitude: float | None = None
    phone: str | None = None
    is_active: bool = True
    id: str = field(default_factory=new_id)


@dataclass
class Offer:
    product_id: str
    store_id: str
    price: str
    availability_type: str
    currency: str = "USD"
    eta: str | None = None
    eta_minutes: int | None = None
    distance: str | None = None
    distance_miles: float | None = None
    in_stock: bool = True
    stock_level: int | None = None
    deep_link: str | None = None
    margin: float | None = None
    trust_score: float = 100
    is_eligible: bool = True
    id: str = field(default_factory=new_id)
    last_seen: datetime = field(default_factory=utc_now)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    source: Literal["local"] = "local"


@dataclass
class ProxyOffer:
    id: str
    store_name: str
    store_chain: str
    availability_type: str
    price: str
    distance: str
    distance_miles: float
    eta: str
    eta_minutes: int
    last_seen: str
    trust_score: int
    deep_link: str | None = None
    address: str = ""
    currency: str = "USD"
    margin: float = PROXY_MARGIN
    in_stock: bool = True
    is_eligible: bool = True
    source: Literal["proxy"] = "proxy"


@dataclass
class ResolveRequestRecord:
    identifiers: Dict[str, str]
    platform: str
    url: str
    brand: str | None = None
    title: str | None = None
    variant: str | None = None
    price: str | None = None
    currency: str | None = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    zip_code: str | None = None
    user_agent: str | None = None
    response: Dict[str, Any] | None = None
    success: bool = False
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "id": data["id"],
            "identifiers": data["identifiers"],
            "brand": data["brand"],
            "title": data["title"],
            "variant": data["variant"],
            "price": data["price"],
            "currency": data["currency"],
            "attributes": data["attributes"],
            "platform": data["platform"],
            "url": data["url"],
            "zipCode": data["zip_code"],
            "userAgent": data["user_agent"],
            "response": data["response"],
            "success": data["success"],
            "createdAt": isoformat(self.created_at),
        }
