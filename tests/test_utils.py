"""Cache fingerprints and ETA parsing."""
from localstock.models import ResolveRequest
from localstock.utils import fingerprint, parse_eta_minutes

BASE = {
    "identifiers": {"gtin": "027242920156", "asin": "B0BXQBHL5D"},
    "platform": "amazon",
    "url": "https://amazon.com/dp/B0BXQBHL5D",
    "variant": "Black",
    "zip": "10001",
}


def request(**overrides) -> ResolveRequest:
    data = {**BASE, **overrides}
    return ResolveRequest.model_validate(data)


def test_fingerprint_ignores_incidental_fields():
    plain = request()
    noisy = request(title="Sony headphones", attributes={"color": "Black"}, price="$1", url="https://x")
    assert fingerprint(plain) == fingerprint(noisy)


def test_fingerprint_distinguishes_zip_variant_and_platform():
    key = fingerprint(request())
    assert fingerprint(request(zip="94103")) != key
    assert fingerprint(request(variant="Silver")) != key
    assert fingerprint(request(platform="walmart")) != key


def test_gtin_family_collapses_to_first_present():
    by_upc = request(identifiers={"upc": "027242920156", "asin": "B0BXQBHL5D"})
    by_gtin = request(identifiers={"gtin": "027242920156", "asin": "B0BXQBHL5D"})
    assert fingerprint(by_upc) == fingerprint(by_gtin)


def test_blank_identifiers_count_as_missing():
    blank = request(identifiers={"gtin": "", "asin": "B0BXQBHL5D"}, variant="Black")
    asin_only = request(identifiers={"asin": "B0BXQBHL5D"})
    assert fingerprint(blank) == fingerprint(asin_only)


def test_parse_eta_minutes():
    assert parse_eta_minutes(45) == 45
    assert parse_eta_minutes("45 min") == 45
    assert parse_eta_minutes("2 hours") == 120
    assert parse_eta_minutes("3 hrs") == 180
    assert parse_eta_minutes("6:00 PM") is None
    assert parse_eta_minutes(None) is None
    assert parse_eta_minutes(True) is None
