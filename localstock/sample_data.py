"""Reference catalog loaded into an empty repository on startup."""
from __future__ import annotations

import logging

from .entities import DELIVERY, PICKUP, Product
from .repository import Repository

logger = logging.getLogger(__name__)

SAMPLE_ASIN = "B0BXQBHL5D"
SAMPLE_GTIN = "027242920156"


def seed_sample_data(repository: Repository) -> Product:
    """Create three NYC/DC stores, one headphone product and its three offers."""

    existing = repository.get_product_by_identifiers({"asin": SAMPLE_ASIN})
    if existing is not None:
        return existing

    best_buy = repository.create_store(
        name="Best Buy",
        chain="bestbuy",
        address="1247 Broadway, New York, NY",
        city="New York",
        state="NY",
        zip_code="10001",
        latitude=40.7505,
        longitude=-73.9934,
        phone="(212) 555-0123",
    )
    target = repository.create_store(
        name="Target",
        chain="target",
        address="620 Avenue of the Americas, New York, NY",
        city="New York",
        state="NY",
        zip_code="10011",
        latitude=40.7414,
        longitude=-73.9962,
        phone="(212) 555-0456",
    )
    walmart = repository.create_store(
        name="Walmart",
        chain="walmart",
        address="4738 14th St NW, Washington, DC",
        city="Washington",
        state="DC",
        zip_code="20011",
        latitude=38.9531,
        longitude=-77.0329,
        phone="(202) 555-0789",
    )

    headphones = repository.create_product(
        gtin=SAMPLE_GTIN,
        upc=SAMPLE_GTIN,
        asin=SAMPLE_ASIN,
        brand="Sony",
        title="Sony WH-1000XM5 Wireless Noise Canceling Headphones",
        variant="Black",
        price="$349.99",
        currency="USD",
        images=["https://example.com/headphones.jpg"],
        platform="amazon",
        url=f"https://www.amazon.com/dp/{SAMPLE_ASIN}",
        attributes={
            "color": "Black",
            "connectivity": "Wireless",
            "features": ["Noise Canceling", "Bluetooth"],
        },
    )

    repository.create_offer(
        product_id=headphones.id,
        store_id=best_buy.id,
        price="$329.99",
        availability_type=PICKUP,
        eta="2 hours",
        eta_minutes=120,
        distance="0.3 mi",
        distance_miles=0.3,
        stock_level=5,
        deep_link="https://www.bestbuy.com/site/sony-wh-1000xm5/6505727.p",
        margin=50,
        trust_score=95,
    )
    repository.create_offer(
        product_id=headphones.id,
        store_id=target.id,
        price="$349.99",
        availability_type=DELIVERY,
        eta="6:00 PM",
        eta_minutes=360,
        distance="same-day delivery",
        distance_miles=0,
        stock_level=3,
        deep_link="https://www.target.com/p/sony-wh-1000xm5/-/A-84757891",
        margin=40,
        trust_score=90,
    )
    repository.create_offer(
        product_id=headphones.id,
        store_id=walmart.id,
        price="$339.95",
        availability_type=PICKUP,
        eta="4 hours",
        eta_minutes=240,
        distance="1.2 mi",
        distance_miles=1.2,
        stock_level=2,
        deep_link="https://www.walmart.com/ip/Sony-WH-1000XM5/12345",
        margin=35,
        trust_score=85,
    )
    logger.info("Seeded sample catalog: 3 stores, 1 product, 3 offers")
    return headphones
