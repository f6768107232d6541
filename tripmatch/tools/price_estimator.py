"""Heuristic flight and hotel pricing.

Nothing here calls a pricing API. Routes and destinations are classified into
tiers with ordered keyword tables, each tier maps to a ``PriceBand`` and the
returned price is the band average nudged by a small random perturbation and
clamped back into the band.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple


@dataclass(frozen=True)
class PriceBand:
    min: float
    max: float
    avg: float

    def scaled(self, factor: float) -> "PriceBand":
        return PriceBand(self.min * factor, self.max * factor, self.avg * factor)


# ---------- flight tiers ----------
DOMESTIC = "domestic"
SHORT_INTERNATIONAL = "short_international"
MEDIUM_INTERNATIONAL = "medium_international"
LONG_INTERNATIONAL = "long_international"

# Round-trip economy fares for one traveller.
FLIGHT_BANDS: Dict[str, PriceBand] = {
    DOMESTIC: PriceBand(150.0, 600.0, 320.0),
    SHORT_INTERNATIONAL: PriceBand(300.0, 900.0, 550.0),
    MEDIUM_INTERNATIONAL: PriceBand(500.0, 1400.0, 850.0),
    LONG_INTERNATIONAL: PriceBand(800.0, 2200.0, 1300.0),
}

# (keywords, country, region). First match wins, so city and state names sit
# ahead of broader country names that could collide with them.
LOCATION_TABLE: Tuple[Tuple[Tuple[str, ...], str, str], ...] = (
    (("puerto rico", "san juan"), "US", "caribbean"),
    (("hawaii", "honolulu", "maui"), "US", "oceania"),
    (("alaska", "anchorage"), "US", "north_america"),
    (
        (
            "united states", "usa", "u.s.", "texas", "austin", "dallas", "houston", "california",
            "los angeles", "san francisco", "san diego", "new york", "nyc", "florida", "miami",
            "orlando", "chicago", "illinois", "seattle", "washington", "boston", "denver",
            "colorado", "las vegas", "nevada", "arizona", "phoenix", "atlanta", "georgia",
            "new orleans", "nashville", "tennessee", "portland", "oregon", "utah", "new mexico",
            "indiana", "indianapolis",
        ),
        "US",
        "north_america",
    ),
    (("canada", "toronto", "vancouver", "montreal", "calgary", "quebec"), "CA", "north_america"),
    (("mexico", "cancun", "tulum", "cabo", "oaxaca", "guadalajara"), "MX", "latin_america"),
    (("costa rica", "panama", "guatemala", "belize", "honduras", "nicaragua"), "CR", "latin_america"),
    (("jamaica", "bahamas", "barbados", "aruba", "dominican", "cuba", "caribbean"), "JM", "caribbean"),
    (("brazil", "rio de janeiro", "sao paulo"), "BR", "latin_america"),
    (("argentina", "buenos aires", "patagonia"), "AR", "latin_america"),
    (("peru", "lima", "cusco", "machu picchu"), "PE", "latin_america"),
    (("colombia", "bogota", "medellin", "cartagena"), "CO", "latin_america"),
    (("chile", "santiago"), "CL", "latin_america"),
    (("ecuador", "galapagos", "bolivia"), "EC", "latin_america"),
    (("united kingdom", "england", "london", "scotland", "edinburgh", "uk"), "GB", "europe"),
    (("ireland", "dublin"), "IE", "europe"),
    (("italy", "rome", "florence", "venice", "milan", "amalfi"), "IT", "europe"),
    (("france", "paris", "nice", "lyon"), "FR", "europe"),
    (("spain", "madrid", "barcelona", "seville"), "ES", "europe"),
    (("portugal", "lisbon", "porto"), "PT", "europe"),
    (("germany", "berlin", "munich"), "DE", "europe"),
    (("netherlands", "amsterdam"), "NL", "europe"),
    (("switzerland", "zurich", "geneva", "zermatt", "swiss"), "CH", "europe"),
    (("austria", "vienna"), "AT", "europe"),
    (("greece", "athens", "santorini", "mykonos"), "GR", "europe"),
    (("iceland", "reykjavik"), "IS", "europe"),
    (("norway", "oslo", "sweden", "stockholm", "denmark", "copenhagen", "finland"), "NO", "europe"),
    (("czech", "prague", "hungary", "budapest", "poland", "krakow", "croatia"), "CZ", "europe"),
    (("turkey", "istanbul"), "TR", "middle_east"),
    (("dubai", "united arab emirates", "uae", "abu dhabi", "qatar", "doha", "israel", "jordan"), "AE", "middle_east"),
    (("morocco", "marrakech", "egypt", "cairo"), "MA", "africa"),
    (("south africa", "cape town", "kenya", "tanzania", "nairobi"), "ZA", "africa"),
    (("japan", "tokyo", "kyoto", "osaka"), "JP", "east_asia"),
    (("south korea", "korea", "seoul"), "KR", "east_asia"),
    (("china", "beijing", "shanghai", "hong kong"), "CN", "east_asia"),
    (("taiwan", "taipei"), "TW", "east_asia"),
    (("thailand", "bangkok", "phuket", "chiang mai"), "TH", "southeast_asia"),
    (("vietnam", "hanoi", "ho chi minh"), "VN", "southeast_asia"),
    (("indonesia", "bali", "jakarta"), "ID", "southeast_asia"),
    (("singapore",), "SG", "southeast_asia"),
    (("malaysia", "kuala lumpur", "philippines", "manila", "cambodia", "laos"), "MY", "southeast_asia"),
    (("india", "delhi", "mumbai", "goa", "nepal", "sri lanka", "maldives"), "IN", "south_asia"),
    (("australia", "sydney", "melbourne"), "AU", "oceania"),
    (("new zealand", "auckland", "queenstown"), "NZ", "oceania"),
    (("fiji", "bora bora", "tahiti"), "FJ", "oceania"),
)

# Region pairs that sit within a medium-haul flight of each other.
NEARBY_REGIONS = frozenset(
    {
        frozenset({"north_america", "latin_america"}),
        frozenset({"north_america", "caribbean"}),
        frozenset({"latin_america", "caribbean"}),
        frozenset({"north_america", "europe"}),
        frozenset({"europe", "middle_east"}),
        frozenset({"europe", "africa"}),
        frozenset({"middle_east", "africa"}),
        frozenset({"middle_east", "south_asia"}),
        frozenset({"east_asia", "southeast_asia"}),
        frozenset({"southeast_asia", "south_asia"}),
        frozenset({"southeast_asia", "oceania"}),
        frozenset({"east_asia", "oceania"}),
    }
)


def locate(text: str | None) -> Optional[Tuple[str, str]]:
    """Return ``(country, region)`` for free-text place names, or ``None``."""
    lowered = f" {(text or '').lower()} "
    if not lowered.strip():
        return None
    for keywords, country, region in LOCATION_TABLE:
        for keyword in keywords:
            # short codes like "uk"/"usa" must match as whole words
            if len(keyword) <= 3:
                if _has_word(lowered, keyword):
                    return country, region
            elif keyword in lowered:
                return country, region
    return None


def _has_word(haystack: str, word: str) -> bool:
    for sep in (" ", ",", ".", "(", ")", "/"):
        haystack = haystack.replace(sep, " ")
    return f" {word.replace('.', ' ').strip()} " in haystack


def classify_route(origin: str | None, destination: str | None) -> str:
    src = locate(origin)
    dst = locate(destination)
    if src is None or dst is None:
        return MEDIUM_INTERNATIONAL
    if src[0] == dst[0]:
        return DOMESTIC
    if src[1] == dst[1]:
        return SHORT_INTERNATIONAL
    if frozenset({src[1], dst[1]}) in NEARBY_REGIONS:
        return MEDIUM_INTERNATIONAL
    return LONG_INTERNATIONAL


# ---------- hotel tiers ----------
BUDGET_TIER = "budget"
MID_TIER = "mid"
PREMIUM_TIER = "premium"

DESTINATION_TIERS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (
        (
            "switzerland", "zurich", "geneva", "zermatt", "iceland", "norway", "monaco",
            "maldives", "bora bora", "dubai", "new york", "nyc", "london", "singapore",
            "san francisco", "hawaii", "santorini", "aspen",
        ),
        PREMIUM_TIER,
    ),
    # US states whose names contain a budget-tier country
    (("new mexico", "indiana"), MID_TIER),
    (
        (
            "bali", "indonesia", "thailand", "bangkok", "vietnam", "cambodia", "laos",
            "india", "nepal", "sri lanka", "mexico", "cancun", "tulum", "peru", "colombia",
            "bolivia", "guatemala", "morocco", "egypt", "philippines", "malaysia", "turkey",
        ),
        BUDGET_TIER,
    ),
)

STANDARD_ACCOMMODATION = "4-star hotel"

HOTEL_BANDS: Dict[Tuple[str, str], PriceBand] = {
    ("3-star hotel", BUDGET_TIER): PriceBand(30.0, 80.0, 50.0),
    ("3-star hotel", MID_TIER): PriceBand(80.0, 160.0, 115.0),
    ("3-star hotel", PREMIUM_TIER): PriceBand(150.0, 300.0, 210.0),
    ("4-star hotel", BUDGET_TIER): PriceBand(60.0, 140.0, 95.0),
    ("4-star hotel", MID_TIER): PriceBand(140.0, 260.0, 190.0),
    ("4-star hotel", PREMIUM_TIER): PriceBand(250.0, 500.0, 350.0),
    ("5-star hotel", BUDGET_TIER): PriceBand(110.0, 250.0, 170.0),
    ("5-star hotel", MID_TIER): PriceBand(250.0, 500.0, 350.0),
    ("5-star hotel", PREMIUM_TIER): PriceBand(450.0, 1000.0, 650.0),
    ("5-star resort", BUDGET_TIER): PriceBand(150.0, 300.0, 220.0),
    ("5-star resort", MID_TIER): PriceBand(300.0, 600.0, 420.0),
    ("5-star resort", PREMIUM_TIER): PriceBand(600.0, 1500.0, 900.0),
    ("luxury resort", BUDGET_TIER): PriceBand(250.0, 600.0, 400.0),
    ("luxury resort", MID_TIER): PriceBand(500.0, 1200.0, 800.0),
    ("luxury resort", PREMIUM_TIER): PriceBand(1000.0, 3000.0, 1800.0),
}

# Free-text accommodation descriptions mapped onto matrix rows; order matters.
ACCOMMODATION_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("luxury resort", "luxury villa", "overwater", "all-inclusive luxury"), "luxury resort"),
    (("5-star resort", "5 star resort", "five-star resort", "five star resort", "resort"), "5-star resort"),
    (("5-star", "5 star", "five-star", "five star", "luxury"), "5-star hotel"),
    (("4-star", "4 star", "four-star", "four star", "boutique"), "4-star hotel"),
    (("3-star", "3 star", "three-star", "three star", "hostel", "guesthouse", "budget", "motel"), "3-star hotel"),
)


def classify_destination_tier(destination: str | None) -> str:
    lowered = f" {(destination or '').lower()} "
    for keywords, tier in DESTINATION_TIERS:
        if any(_has_word(lowered, keyword) for keyword in keywords):
            return tier
    return MID_TIER


def normalize_accommodation(accommodation_type: str | None) -> str:
    lowered = (accommodation_type or "").lower()
    for keywords, label in ACCOMMODATION_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return label
    return STANDARD_ACCOMMODATION


def budget_scale(budget_level: float | None) -> float:
    level = 50.0 if budget_level is None else min(100.0, max(0.0, float(budget_level)))
    # 0.7 + 0.3 * level / 100, kept in whole percents so 0 and 100 land exactly
    return (70.0 + 3.0 * level / 10.0) / 100.0


def hotel_band(destination: str | None, accommodation_type: str | None, budget_level: float | None) -> PriceBand:
    tier = classify_destination_tier(destination)
    key = (normalize_accommodation(accommodation_type), tier)
    band = HOTEL_BANDS.get(key) or HOTEL_BANDS[(STANDARD_ACCOMMODATION, tier)]
    return band.scaled(budget_scale(budget_level))


def _perturb_within(band: PriceBand, rng: random.Random | None = None) -> float:
    rng = rng or random
    jitter = rng.uniform(-0.1, 0.1) * (band.max - band.min)
    return max(0.0, min(band.max, max(band.min, band.avg + jitter)))


def estimate_flight_price(
    origin: str | None,
    destination: str | None,
    date: str | None = None,
    *,
    rng: random.Random | None = None,
) -> float:
    """Round-trip fare for one traveller in USD.

    ``date`` is accepted for signature parity with live fare providers; the
    heuristic bands are not seasonal.
    """
    band = FLIGHT_BANDS[classify_route(origin, destination)]
    return _perturb_within(band, rng)


def estimate_hotel_price(
    destination: str | None,
    accommodation_type: str | None,
    budget_level: float | None,
    *,
    rng: random.Random | None = None,
) -> float:
    """Nightly rate in USD, bounded by the scaled band for the destination tier."""
    return _perturb_within(hotel_band(destination, accommodation_type, budget_level), rng)


def flight_floor(tiers: Sequence[str] = (DOMESTIC, SHORT_INTERNATIONAL, LONG_INTERNATIONAL)) -> Dict[str, float]:
    """Minimum fares per tier, quoted to the model as realism guardrails."""
    return {tier: FLIGHT_BANDS[tier].min for tier in tiers}
