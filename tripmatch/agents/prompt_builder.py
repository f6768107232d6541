"""Render traveller preferences into chat prompts for the trip generator."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from tripmatch.agents.trip_validator import MIN_TOTAL_USD
from tripmatch.schemas import PreferenceRequest
from tripmatch.tools.price_estimator import (
    DOMESTIC,
    LONG_INTERNATIONAL,
    SHORT_INTERNATIONAL,
    flight_floor,
)

SCHEMA_HINT: Dict[str, Any] = {
    "trips": [
        {
            "id": "string",
            "title": "string",
            "destination": "string (City, Country)",
            "startDate": "MM/DD/YYYY",
            "endDate": "MM/DD/YYYY",
            "durationDays": "integer >= 1",
            "budgetUSD": "number (equals costBreakdown.totalUSD)",
            "currency": "ISO 4217 code of the destination",
            "activities": ["string"],
            "latitude": "number",
            "longitude": "number",
            "accommodations": "3-star hotel | 4-star hotel | 5-star hotel | 5-star resort | luxury resort",
            "description": "string",
            "matchScore": "integer 0-100",
            "itinerary": ["string (5-8 entries, one per activity)"],
            "costBreakdown": {
                "flightUSD": "number",
                "hotelPerNightUSD": "number",
                "hotelNights": "integer >= 1",
                "hotelTotalUSD": "number",
                "transportUSD": "number",
                "activitiesUSD": "number",
                "taxesFeesUSD": "number",
                "totalUSD": "number",
                "perPersonUSD": "number (equals totalUSD)",
            },
            "assumptions": ["string"],
            "dataSources": ["string"],
        }
    ]
}

# Nightly hotel ranges quoted per budget dial tier: (upper dial bound, label, low, high).
# The last row catches every dial above the previous bound.
_HOTEL_RANGES = (
    (33, "budget", 40, 120),
    (66, "moderate", 120, 250),
    (100, "luxury", 250, 600),
)

_DIAL_WORDS = {
    "budget": ("very budget-conscious", "budget-conscious", "moderate", "comfortable", "luxury"),
    "travel_style": ("pure relaxation", "mostly relaxing", "balanced", "active", "high adventure"),
    "planning": ("fully spontaneous", "loosely planned", "balanced", "well planned", "fully scheduled"),
}


@dataclass
class Prompt:
    system_text: str
    user_text: str
    schema_hint: Dict[str, Any] = field(default_factory=lambda: SCHEMA_HINT)

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system_text},
            {"role": "user", "content": self.user_text},
        ]


def describe_dial(name: str, value: int) -> str:
    words = _DIAL_WORDS[name]
    idx = min(len(words) - 1, max(0, value) * len(words) // 101)
    return f"{value}/100 ({words[idx]})"


def hotel_range_for(budget: int) -> tuple[str, int, int]:
    for upper, label, low, high in _HOTEL_RANGES[:-1]:
        if budget <= upper:
            return label, low, high
    return _HOTEL_RANGES[-1][1:]


def destination_rule(destination: str) -> str:
    if not destination:
        return "The traveller is open to ANY destination; propose varied places that fit the preferences."
    return (
        f'HARD CONSTRAINT: every trip MUST be located in "{destination}". '
        f'Do not propose any trip outside "{destination}", not even a nearby city or region. '
        f'Each trip\'s "destination" field must name "{destination}".'
    )


def _guardrails(request: PreferenceRequest) -> List[str]:
    floors = flight_floor((DOMESTIC, SHORT_INTERNATIONAL, LONG_INTERNATIONAL))
    tier_label, hotel_low, hotel_high = hotel_range_for(request.budget)
    lines = [
        "Exactly ONE traveller. Every cost is for one person; perPersonUSD equals totalUSD.",
        "Set \"currency\" to the destination's local currency code, but keep EVERY numeric cost field in USD.",
        (
            f"Round-trip flight minimums: domestic at least ${floors[DOMESTIC]:.0f}, "
            f"short international at least ${floors[SHORT_INTERNATIONAL]:.0f}, "
            f"long international at least ${floors[LONG_INTERNATIONAL]:.0f}."
        ),
        f"Hotel nightly rate for a {tier_label} budget: ${hotel_low}-${hotel_high} per night.",
        "hotelTotalUSD = hotelPerNightUSD * hotelNights; hotelNights = days between startDate and endDate (at least 1).",
        "totalUSD = flightUSD + hotelTotalUSD + transportUSD + activitiesUSD + taxesFeesUSD.",
        f"Never propose a trip whose totalUSD is below ${MIN_TOTAL_USD:.0f}.",
    ]
    if request.departure_location:
        lines.append(
            f"The traveller departs from {request.departure_location}; flightUSD must be greater than 0."
        )
    return lines


def build_prompt(request: PreferenceRequest) -> Prompt:
    """Deterministically render ``request`` into system and user messages."""
    destination = request.destination
    rule = destination_rule(destination)
    guardrails = "\n".join(f"- {line}" for line in _guardrails(request))

    system_text = (
        "You are a travel planner that designs realistic, fully costed trips.\n"
        f"{rule}\n"
        "Cost rules:\n"
        f"{guardrails}\n"
        "Reply with ONLY one JSON object of the form {\"trips\": [...]} containing concrete values. "
        "Do not repeat the schema, do not wrap the JSON in markdown code fences, and add no commentary."
    )

    if request.start_date and request.end_date:
        dates = f"{request.start_date} to {request.end_date}"
    elif request.start_date or request.end_date:
        dates = f"around {request.start_date or request.end_date} (flexible)"
    else:
        dates = "flexible; choose a sensible 3-7 day window"

    user_text = (
        f"Create exactly {request.max_results} trip recommendations.\n"
        "Traveller preferences:\n"
        f"- budget: {describe_dial('budget', request.budget)}\n"
        f"- travel style: {describe_dial('travel_style', request.travel_style)}\n"
        f"- planning: {describe_dial('planning', request.planning)}\n"
        f"- departing from: {request.departure_location or 'unspecified'}\n"
        f"- destination: {destination or 'anywhere'}\n"
        f"- dates: {dates}\n"
        f"{rule}\n"
        "Rank trips by how well they match; matchScore is 0-100.\n"
        "Use exactly this JSON shape (replace every type description with a real value):\n"
        f"{json.dumps(SCHEMA_HINT, indent=2)}"
    )
    return Prompt(system_text=system_text, user_text=user_text)
