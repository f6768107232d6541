"""Re-price validated candidates and rank them by match score."""
from __future__ import annotations

import logging
import os
import random
from datetime import datetime
from typing import List, Optional

from tripmatch.schemas import CostBreakdown, PreferenceRequest, TripCandidate
from tripmatch.tools.price_estimator import estimate_flight_price, estimate_hotel_price

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

DATE_FORMAT = "%m/%d/%Y"
DEFAULT_NIGHTS = 3

# Defaults used when the model leaves a component empty.
TRANSPORT_PER_DAY_USD = 30.0
ACTIVITIES_PER_DAY_USD = 50.0
TAXES_FEES_RATE = 0.12


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT)
    except ValueError:
        return None


def compute_nights(start: str | None, end: str | None, duration_days: Optional[int] = None) -> int:
    """Nights between two ``MM/DD/YYYY`` dates, falling back to the trip length."""
    start_dt, end_dt = _parse_date(start), _parse_date(end)
    if start_dt and end_dt:
        return max(1, abs((end_dt - start_dt).days))
    if duration_days:
        return max(1, int(duration_days))
    return DEFAULT_NIGHTS


def _trip_dates(candidate: TripCandidate, request: PreferenceRequest) -> tuple[str, str]:
    if _parse_date(candidate.start_date) and _parse_date(candidate.end_date):
        return candidate.start_date, candidate.end_date
    return request.start_date, request.end_date


def reprice(candidate: TripCandidate, request: PreferenceRequest, *, rng: random.Random | None = None) -> None:
    """Overwrite the candidate's costs with estimator output, in place."""
    start, end = _trip_dates(candidate, request)
    nights = compute_nights(start, end, candidate.duration_days)
    previous = candidate.cost_breakdown or CostBreakdown()

    flight = estimate_flight_price(request.departure_location, candidate.destination, start, rng=rng)
    per_night = estimate_hotel_price(candidate.destination, candidate.accommodations, request.budget, rng=rng)
    hotel_total = per_night * nights

    days = nights + 1
    transport = previous.transport_usd or TRANSPORT_PER_DAY_USD * days
    activities = previous.activities_usd or ACTIVITIES_PER_DAY_USD * days
    taxes = previous.taxes_fees_usd or TAXES_FEES_RATE * (flight + hotel_total)

    breakdown = CostBreakdown(
        flightUSD=round(flight, 2),
        hotelPerNightUSD=round(per_night, 2),
        hotelNights=nights,
        hotelTotalUSD=round(hotel_total, 2),
        transportUSD=round(transport, 2),
        activitiesUSD=round(activities, 2),
        taxesFeesUSD=round(taxes, 2),
    )
    breakdown.total_usd = round(breakdown.component_sum(), 2)
    breakdown.per_person_usd = breakdown.total_usd

    logger.debug(
        "Re-priced trip %s: flight %.2f, hotel %.2f x %d, total %.2f (was %.2f)",
        candidate.id,
        breakdown.flight_usd,
        breakdown.hotel_per_night_usd,
        nights,
        breakdown.total_usd,
        previous.total_usd,
    )
    candidate.cost_breakdown = breakdown
    candidate.budget_usd = breakdown.total_usd


def settle_model_costs(candidate: TripCandidate) -> None:
    """Keep the model's costs but pin the single-traveller invariants."""
    breakdown = candidate.cost_breakdown
    if breakdown is None:
        return
    if breakdown.total_usd <= 0:
        breakdown.total_usd = round(breakdown.component_sum(), 2)
    breakdown.per_person_usd = breakdown.total_usd
    candidate.budget_usd = breakdown.total_usd


def rank_candidates(candidates: List[TripCandidate]) -> List[TripCandidate]:
    # sorted() is stable, so equal scores keep their incoming order
    return sorted(candidates, key=lambda c: c.match_score, reverse=True)


def enrich_candidates(
    candidates: List[TripCandidate],
    request: PreferenceRequest,
    *,
    reprice_with_estimator: bool = True,
    rng: random.Random | None = None,
) -> List[TripCandidate]:
    for candidate in candidates:
        if reprice_with_estimator:
            reprice(candidate, request, rng=rng)
        else:
            settle_model_costs(candidate)

    ranked = rank_candidates(candidates)
    if ranked:
        logger.info(
            "Ranked %d trips (%s); top %s at %.0f/100",
            len(ranked),
            "estimator prices" if reprice_with_estimator else "model prices",
            ranked[0].id,
            ranked[0].match_score,
        )
    return ranked
