import random

from tripmatch.tools.price_estimator import (
    BUDGET_TIER,
    DOMESTIC,
    FLIGHT_BANDS,
    HOTEL_BANDS,
    LONG_INTERNATIONAL,
    MEDIUM_INTERNATIONAL,
    MID_TIER,
    PREMIUM_TIER,
    SHORT_INTERNATIONAL,
    budget_scale,
    classify_destination_tier,
    classify_route,
    estimate_flight_price,
    estimate_hotel_price,
    hotel_band,
    normalize_accommodation,
)


def test_route_tiers():
    assert classify_route("Austin, Texas", "New York, NY") == DOMESTIC
    assert classify_route("Paris, France", "Rome, Italy") == SHORT_INTERNATIONAL
    assert classify_route("Austin, Texas", "Cancun, Mexico") == MEDIUM_INTERNATIONAL
    assert classify_route("Austin, Texas", "Tokyo, Japan") == LONG_INTERNATIONAL
    assert classify_route("", "Tokyo, Japan") == MEDIUM_INTERNATIONAL
    assert classify_route("Somewhere", "Nowhere") == MEDIUM_INTERNATIONAL


def test_keyword_collisions_resolve_to_the_right_country():
    assert classify_route("Venice, Italy", "Rome, Italy") == DOMESTIC
    assert classify_route("Santa Fe, New Mexico", "Austin, Texas") == DOMESTIC
    assert classify_route("London, UK", "Edinburgh, Scotland") == DOMESTIC


def test_flight_price_stays_within_tier_band():
    rng = random.Random(7)
    band = FLIGHT_BANDS[LONG_INTERNATIONAL]
    for _ in range(200):
        price = estimate_flight_price("Austin, Texas", "Tokyo, Japan", "06/01/2026", rng=rng)
        assert band.min <= price <= band.max
        # perturbation is at most 10% of the band's range around its average
        assert abs(price - band.avg) <= 0.1 * (band.max - band.min) + 1e-9


def test_bali_resort_stays_in_budget_tier():
    rng = random.Random(3)
    base = HOTEL_BANDS[("5-star resort", BUDGET_TIER)]
    factor = budget_scale(80)
    swiss_floor = HOTEL_BANDS[("5-star resort", PREMIUM_TIER)].min * factor
    assert (base.min, base.max) == (150.0, 300.0)
    for _ in range(200):
        price = estimate_hotel_price("Bali", "5-star Resort", 80, rng=rng)
        assert base.min * factor <= price <= base.max * factor
        assert price < swiss_floor


def test_destination_tiers():
    assert classify_destination_tier("Zermatt, Switzerland") == PREMIUM_TIER
    assert classify_destination_tier("Ubud, Bali") == BUDGET_TIER
    assert classify_destination_tier("Tokyo, Japan") == MID_TIER
    assert classify_destination_tier("Santa Fe, New Mexico") == MID_TIER
    assert classify_destination_tier("Indianapolis, Indiana") == MID_TIER
    assert classify_destination_tier("Oaxaca, Mexico") == BUDGET_TIER
    assert classify_destination_tier("Goa, India") == BUDGET_TIER
    assert classify_destination_tier("") == MID_TIER


def test_accommodation_normalisation_and_fallback():
    assert normalize_accommodation("Luxury Resort & Spa") == "luxury resort"
    assert normalize_accommodation("5-star Resort") == "5-star resort"
    assert normalize_accommodation("Five star hotel") == "5-star hotel"
    assert normalize_accommodation("cozy hostel") == "3-star hotel"
    assert normalize_accommodation("treehouse") == "4-star hotel"
    assert normalize_accommodation(None) == "4-star hotel"
    assert hotel_band("Tokyo", "treehouse", 100) == HOTEL_BANDS[("4-star hotel", MID_TIER)]


def test_budget_scale_is_linear_and_clamped():
    assert budget_scale(0) == 0.7
    assert budget_scale(100) == 1.0
    assert budget_scale(250) == 1.0
    assert budget_scale(None) == budget_scale(50)


def test_prices_are_never_negative():
    rng = random.Random(11)
    for budget in (0, 50, 100):
        assert estimate_hotel_price("Hanoi", "3-star hotel", budget, rng=rng) > 0
    assert estimate_flight_price(None, None, rng=rng) > 0
