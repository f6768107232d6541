"""Realism and destination filters applied to extracted trip candidates."""
from __future__ import annotations

import logging
import os
from typing import List, Optional

from tripmatch.schemas import PreferenceRequest, TripCandidate

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

MIN_TOTAL_USD = 300.0
# A zero-cost flight from a known origin is only tolerated above this total.
ZERO_FLIGHT_TOTAL_FLOOR_USD = 1000.0
BREAKDOWN_TOLERANCE_USD = 10.0


def destination_matches(candidate: TripCandidate, requested: str) -> bool:
    """Case-insensitive containment, in either direction, against the first comma segment."""
    wanted = requested.split(",", 1)[0].strip().lower()
    if not wanted:
        return True
    actual = (candidate.destination or candidate.title).strip().lower()
    if not actual:
        return False
    return wanted in actual or actual in wanted


def breakdown_mismatch(candidate: TripCandidate, tolerance: float = BREAKDOWN_TOLERANCE_USD) -> Optional[float]:
    """Return ``stated - computed`` when the cost components do not add up, else ``None``."""
    breakdown = candidate.cost_breakdown
    if breakdown is None:
        return None
    delta = breakdown.total_usd - breakdown.component_sum()
    if abs(delta) > tolerance:
        return delta
    return None


def rejection_reason(candidate: TripCandidate, request: PreferenceRequest) -> Optional[str]:
    if request.destination and not destination_matches(candidate, request.destination):
        return f"destination {candidate.destination or candidate.title!r} is outside {request.destination!r}"

    total = candidate.stated_total
    if total < MIN_TOTAL_USD:
        return f"total ${total:,.0f} is below the ${MIN_TOTAL_USD:,.0f} floor"

    flight = candidate.cost_breakdown.flight_usd if candidate.cost_breakdown else 0.0
    if request.departure_location and flight == 0 and total < ZERO_FLIGHT_TOTAL_FLOOR_USD:
        return (
            f"no flight cost from {request.departure_location} with a total of only ${total:,.0f}"
        )
    return None


def validate_candidates(candidates: List[TripCandidate], request: PreferenceRequest) -> List[TripCandidate]:
    """Cap to ``max_results``, then keep candidates that pass every rule, in order.

    Survivors are returned untouched. Breakdown arithmetic is checked on each
    survivor but a mismatch is only logged.
    """
    considered = candidates[: request.max_results]
    if len(candidates) > len(considered):
        logger.info("Considering %d of %d candidates (maxResults cap)", len(considered), len(candidates))

    survivors: List[TripCandidate] = []
    for candidate in considered:
        reason = rejection_reason(candidate, request)
        if reason:
            logger.info("Dropping trip %s: %s", candidate.id, reason)
            continue
        delta = breakdown_mismatch(candidate)
        if delta is not None:
            logger.warning(
                "Cost breakdown for trip %s is off by %.2f USD (stated %.2f)",
                candidate.id,
                delta,
                candidate.cost_breakdown.total_usd if candidate.cost_breakdown else 0.0,
            )
        survivors.append(candidate)

    logger.info("Validation kept %d of %d candidates", len(survivors), len(considered))
    return survivors
