from __future__ import annotations

import json
import math
import re
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MONEY_CHARS = re.compile(r"[^0-9.\-]")
_LIST_SPLIT = re.compile(r"\s*(?:\n|;)\s*")


def _parse_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf
    if isinstance(value, str):
        try:
            return float(_MONEY_CHARS.sub("", value))
        except ValueError:
            return 0.0
    return 0.0


def coerce_money(value: Any) -> float:
    """Turn model-provided amounts such as ``"$1,200"`` into finite, non-negative floats."""
    amount = _parse_amount(value)
    return max(0.0, amount) if math.isfinite(amount) else 0.0


def coerce_count(value: Any) -> int:
    """Whole count of at least one; infinities and NaN are rejected."""
    amount = _parse_amount(value)
    if not math.isfinite(amount):
        raise ValueError("expected a finite number")
    return max(1, int(round(amount)))


def coerce_str_list(value: Any) -> List[str]:
    """Accept a list, a JSON-encoded list, or a newline/semicolon separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                decoded = json.loads(text)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                value = decoded
            else:
                return [part for part in _LIST_SPLIT.split(text) if part]
        else:
            return [part for part in _LIST_SPLIT.split(text) if part]
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for item in value:
            if item is None:
                continue
            if isinstance(item, dict):
                # {"day": 1, "activity": "..."} style entries
                text = item.get("activity") or item.get("title") or item.get("description")
                if text:
                    out.append(str(text).strip())
                continue
            text = str(item).strip()
            if text:
                out.append(text)
        return out
    return [str(value)]


# ------- Request models -------
class PreferenceRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    budget: int = Field(50, ge=0, le=100)
    travel_style: int = Field(50, ge=0, le=100, alias="travelStyle")
    planning: int = Field(50, ge=0, le=100)
    departure_location: str = Field("", alias="departureLocation")
    destination: str = ""
    start_date: str = Field("", alias="startDate")
    end_date: str = Field("", alias="endDate")
    max_results: int = Field(4, ge=1, alias="maxResults")

    @field_validator("departure_location", "destination", "start_date", "end_date", mode="before")
    @classmethod
    def _blank_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("budget", "travel_style", "planning", "max_results", mode="before")
    @classmethod
    def _default_dial(cls, value: Any, info) -> Any:
        # Clients send null or "" for untouched sliders.
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return value


# ------- Trip models -------
class CostBreakdown(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    flight_usd: float = Field(0.0, alias="flightUSD")
    hotel_per_night_usd: float = Field(0.0, alias="hotelPerNightUSD")
    hotel_nights: int = Field(1, alias="hotelNights")
    hotel_total_usd: float = Field(0.0, alias="hotelTotalUSD")
    transport_usd: float = Field(0.0, alias="transportUSD")
    activities_usd: float = Field(0.0, alias="activitiesUSD")
    taxes_fees_usd: float = Field(0.0, alias="taxesFeesUSD")
    total_usd: float = Field(0.0, alias="totalUSD")
    per_person_usd: float = Field(0.0, alias="perPersonUSD")

    @field_validator(
        "flight_usd",
        "hotel_per_night_usd",
        "hotel_total_usd",
        "transport_usd",
        "activities_usd",
        "taxes_fees_usd",
        "total_usd",
        "per_person_usd",
        mode="before",
    )
    @classmethod
    def _money(cls, value: Any) -> float:
        return coerce_money(value)

    @field_validator("hotel_nights", mode="before")
    @classmethod
    def _nights(cls, value: Any) -> int:
        return coerce_count(value)

    def component_sum(self) -> float:
        return (
            self.flight_usd
            + self.hotel_total_usd
            + self.transport_usd
            + self.activities_usd
            + self.taxes_fees_usd
        )


class TripCandidate(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    title: str = ""
    destination: str = ""
    start_date: str = Field("", alias="startDate")
    end_date: str = Field("", alias="endDate")
    duration_days: int = Field(1, alias="durationDays")
    budget_usd: float = Field(0.0, alias="budgetUSD")
    currency: str = "USD"
    activities: List[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accommodations: str = ""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    description: str = ""
    match_score: float = Field(75.0, alias="matchScore")
    itinerary: List[str] = Field(default_factory=list)
    cost_breakdown: Optional[CostBreakdown] = Field(None, alias="costBreakdown")
    assumptions: List[str] = Field(default_factory=list)
    data_sources: List[str] = Field(default_factory=list, alias="dataSources")

    @field_validator("id", "title", "destination", "start_date", "end_date", "accommodations", "description", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, value: Any) -> str:
        text = str(value or "").strip().upper()
        return text or "USD"

    @field_validator("duration_days", mode="before")
    @classmethod
    def _duration(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator("budget_usd", mode="before")
    @classmethod
    def _budget(cls, value: Any) -> float:
        return coerce_money(value)

    @field_validator("match_score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> float:
        if value is None or value == "":
            return 75.0
        score = coerce_money(value)
        return min(100.0, score)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate(cls, value: Any) -> Optional[float]:
        if value is None or value == "" or isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        return number if math.isfinite(number) else None

    @field_validator("activities", "itinerary", "assumptions", "data_sources", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return coerce_str_list(value)

    @field_validator("cost_breakdown", mode="before")
    @classmethod
    def _breakdown(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                return None
        return value if isinstance(value, (dict, CostBreakdown)) else None

    @property
    def stated_total(self) -> float:
        """Total cost as the candidate states it, falling back to ``budgetUSD``."""
        if self.cost_breakdown is not None and self.cost_breakdown.total_usd > 0:
            return self.cost_breakdown.total_usd
        return self.budget_usd


# ------- Response models -------
class TripsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[True] = True
    trips: List[TripCandidate] = Field(default_factory=list)
    cached: bool = False


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: Literal[False] = False
    error: str
    error_code: str = Field(..., alias="errorCode")
    raw: Optional[str] = None


class ImageUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl")
    source: Literal["unsplash", "fallback"] = "fallback"
