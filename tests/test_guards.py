"""Guard filter thresholds and ordering."""
from dataclasses import replace

from localstock.entities import DELIVERY, PICKUP, Offer, ProxyOffer
from localstock.guards import GuardConfig, apply_guard_filters, passes_guards

CONFIG = GuardConfig()


def make_offer(**overrides) -> Offer:
    fields = dict(
        product_id="p1",
        store_id="s1",
        price="$10.00",
        availability_type=PICKUP,
        eta_minutes=60,
        distance_miles=1.0,
        margin=40,
        trust_score=90,
    )
    fields.update(overrides)
    return Offer(**fields)


def test_default_thresholds():
    assert CONFIG == GuardConfig(min_margin=30, min_trust_score=80, max_eta_minutes=480, max_distance_miles=50)


def test_offer_within_all_thresholds_passes():
    assert passes_guards(make_offer(), CONFIG)


def test_trust_below_minimum_removes_offer():
    offer = make_offer(trust_score=80)
    assert apply_guard_filters([offer], CONFIG) == [offer]
    assert apply_guard_filters([replace(offer, trust_score=79)], CONFIG) == []


def test_low_margin_fails_but_missing_margin_bypasses():
    assert not passes_guards(make_offer(margin=29), CONFIG)
    assert passes_guards(make_offer(margin=30), CONFIG)
    assert passes_guards(make_offer(margin=None), CONFIG)


def test_eta_limit_is_inclusive():
    assert passes_guards(make_offer(eta_minutes=480), CONFIG)
    assert not passes_guards(make_offer(eta_minutes=481), CONFIG)


def test_distance_only_limits_pickup():
    far = 120.0
    assert not passes_guards(make_offer(distance_miles=far), CONFIG)
    assert passes_guards(make_offer(availability_type=DELIVERY, distance_miles=far), CONFIG)


def test_distance_limit_is_configurable():
    tight = GuardConfig(max_distance_miles=5)
    assert not passes_guards(make_offer(distance_miles=6), tight)
    assert passes_guards(make_offer(distance_miles=6), CONFIG)


def test_out_of_stock_or_ineligible_is_removed():
    assert not passes_guards(make_offer(in_stock=False), CONFIG)
    assert not passes_guards(make_offer(is_eligible=False), CONFIG)


def test_filter_preserves_relative_order():
    offers = [
        make_offer(price="$3.00"),
        make_offer(trust_score=10),
        make_offer(price="$1.00"),
        make_offer(in_stock=False),
        make_offer(price="$2.00"),
    ]
    kept = apply_guard_filters(offers, CONFIG)
    assert [offer.price for offer in kept] == ["$3.00", "$1.00", "$2.00"]


def test_proxy_offers_are_guarded_with_their_assumptions():
    proxy = ProxyOffer(
        id="backend-0-p",
        store_name="Shop",
        store_chain="shop",
        availability_type=PICKUP,
        price="$5.00",
        distance="1.0 mi",
        distance_miles=1.0,
        eta="30 min",
        eta_minutes=30,
        last_seen="2024-01-01T00:00:00.000Z",
        trust_score=50,
    )
    assert proxy.margin == 100
    assert not passes_guards(proxy, CONFIG)
    assert passes_guards(replace(proxy, trust_score=95), CONFIG)
