"""Pydantic models for request/response payloads."""
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .entities import IDENTIFIER_FIELDS


class Identifiers(BaseModel):
    model_config = ConfigDict(extra="ignore")

    gtin: str | None = None
    upc: str | None = None
    ean: str | None = None
    asin: str | None = None
    sku: str | None = None

    @field_validator(*IDENTIFIER_FIELDS, mode="before")
    @classmethod
    def _blank_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def present(self) -> Dict[str, str]:
        """Identifier fields that carry a value, in lookup order."""
        return {name: value for name, value in self.model_dump().items() if value}


class ResolveRequest(BaseModel):
    identifiers: Identifiers
    brand: str | None = None
    title: str | None = None
    variant: str | None = None
    price: str | None = None
    currency: str | None = None
    attributes: Dict[str, Any] | None = None
    platform: str = Field(..., description="Marketplace the product page was scraped from")
    url: str = Field(..., description="Product page URL")
    zip: str | None = None


class ResolvedOffer(BaseModel):
    id: str
    storeName: str
    storeChain: str
    address: str
    distance: str
    distanceMiles: float
    availabilityType: str
    eta: str
    etaMinutes: int
    price: str
    currency: str
    lastSeen: str
    deepLink: str | None = None
    inStock: bool
    stockLevel: int | None = None


class ResolveResponse(BaseModel):
    eligible: bool
    offers: List[ResolvedOffer]
    cached: bool
    timestamp: str


class CacheStats(BaseModel):
    entries: int
    ttl: int


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    cache: CacheStats


class StockUpdate(BaseModel):
    inStock: bool
    stockLevel: int | None = Field(default=None, ge=0)
