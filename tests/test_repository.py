"""In-memory repository contracts."""
from localstock.repository import InMemoryRepository
from localstock.sample_data import SAMPLE_ASIN, SAMPLE_GTIN, seed_sample_data


def test_seed_is_idempotent(repository):
    product = seed_sample_data(repository)
    assert product.asin == SAMPLE_ASIN
    assert len(repository.get_offers_by_product(product.id)) == 3


def test_lookup_by_any_identifier(repository):
    by_upc = repository.get_product_by_identifiers({"upc": SAMPLE_GTIN})
    by_asin = repository.get_product_by_identifiers({"asin": SAMPLE_ASIN, "gtin": "nope"})
    assert by_upc is not None
    assert by_upc is by_asin
    assert repository.get_product_by_identifiers({"sku": "missing"}) is None
    assert repository.get_product_by_identifiers({}) is None


def test_stores_by_chain(repository):
    (target,) = repository.get_stores_by_chain("target")
    assert target.zip_code == "10011"
    assert len(repository.get_offers_by_store(target.id)) == 1


def test_stock_update_replaces_snapshot(repository):
    product = repository.get_product_by_identifiers({"asin": SAMPLE_ASIN})
    original = repository.get_offers_by_product(product.id)[0]

    updated = repository.update_offer_stock(original.id, in_stock=False, stock_level=0)
    assert updated is not original
    assert (updated.in_stock, updated.stock_level) == (False, 0)
    assert original.in_stock is True
    assert updated.last_seen >= original.last_seen

    kept = repository.update_offer_stock(original.id, in_stock=True)
    assert kept.stock_level == 0
    assert repository.update_offer_stock("missing", in_stock=True) is None


def test_recent_requests_newest_first_with_limit():
    repo = InMemoryRepository()
    for idx in range(5):
        repo.create_resolve_request(
            {"identifiers": {"asin": f"A{idx}"}, "platform": "amazon", "url": f"u{idx}", "zip": "10001"},
            response={"eligible": False},
            success=True,
        )
    recent = repo.get_recent_resolve_requests(3)
    assert [record.url for record in recent] == ["u4", "u3", "u2"]
    assert recent[0].to_dict()["zipCode"] == "10001"
