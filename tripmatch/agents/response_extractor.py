"""Recover the ``{"trips": [...]}`` payload from raw model text.

Models do not always honour "JSON only": replies arrive wrapped in markdown
fences, preceded by an echo of the requested schema, or followed by prose.
The strategies below run in order and each one either returns a parsed object
or falls through; only the public entry points raise.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from tripmatch.exceptions import ExtractionFailure, NoTextualOutput, SchemaEcho
from tripmatch.schemas import TripCandidate

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

_FENCE_OPEN = re.compile(r"^\s*```[ \t]*(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```\s*$")
_TRIPS_KEY = '"trips"'
_TYPE_WORDS = frozenset({"string", "number", "integer", "boolean", "array", "object", "null", "mm/dd/yyyy"})


def strip_fences(text: str) -> str:
    cleaned = _FENCE_OPEN.sub("", text.strip(), count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def _try_parse(fragment: str) -> Any | None:
    try:
        return json.loads(fragment)
    except (TypeError, ValueError):
        return None


def _scan(text: str, start: int = 0, stop: Optional[int] = None) -> Iterator[tuple[int, str]]:
    """Yield ``(index, char)`` for every brace outside string literals."""
    in_string = False
    escape = False
    end = len(text) if stop is None else stop
    for idx in range(start, end):
        ch = text[idx]
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "{}":
            yield idx, ch


def balanced_end(text: str, start: int) -> Optional[int]:
    """Index one past the ``}`` that closes the object opened at ``text[start]``."""
    if start < 0 or start >= len(text) or text[start] != "{":
        return None
    depth = 0
    for idx, ch in _scan(text, start):
        if ch == "{":
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return idx + 1
    return None


def _looks_like_type_descriptor(entry: Any) -> bool:
    if not isinstance(entry, dict) or not entry:
        return False
    if entry.get("type") in _TYPE_WORDS and ("properties" in entry or "items" in entry):
        return True
    if any(isinstance(v, (int, float)) and not isinstance(v, bool) for v in entry.values()):
        return False
    words = [v.strip().split(" ", 1)[0].lower() for v in entry.values() if isinstance(v, str) and v.strip()]
    if not words:
        return False
    typed = sum(1 for w in words if w in _TYPE_WORDS)
    return typed * 2 > len(words)


def is_schema_echo(trips: List[Any]) -> bool:
    return bool(trips) and all(_looks_like_type_descriptor(t) for t in trips)


def locate_trips(payload: Any) -> Optional[List[Any]]:
    """Find the trips array at the top level, under ``parameters`` or one level down."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return None
    trips = payload.get("trips")
    if isinstance(trips, list):
        return trips
    params = payload.get("parameters")
    if isinstance(params, dict) and isinstance(params.get("trips"), list):
        return params["trips"]
    for value in payload.values():
        if isinstance(value, dict) and isinstance(value.get("trips"), list):
            return value["trips"]
    return None


def _carries_trip_data(payload: Any) -> bool:
    trips = locate_trips(payload)
    return trips is not None and not is_schema_echo(trips)


def _parse_direct(cleaned: str) -> Any | None:
    parsed = _try_parse(cleaned)
    return parsed if isinstance(parsed, (dict, list)) else None


def _object_around(text: str, index: int) -> Optional[Dict[str, Any]]:
    """Smallest parseable object spanning ``index``.

    String state is only tracked from each candidate ``{`` forward, so quotes
    in surrounding prose cannot hide the key.
    """
    start = text.rfind("{", 0, index)
    if start == -1:
        start = text.find("{")
        end = balanced_end(text, start)
        parsed = _try_parse(text[start:end]) if end is not None else None
        return parsed if isinstance(parsed, dict) else None
    while start != -1:
        end = balanced_end(text, start)
        if end is not None and end > index:
            parsed = _try_parse(text[start:end])
            if isinstance(parsed, dict):
                return parsed
        start = text.rfind("{", 0, start)
    return None


def _parse_around_trips_key(cleaned: str) -> Any | None:
    first_parsed: Any | None = None
    search_from = 0
    while True:
        key_at = cleaned.find(_TRIPS_KEY, search_from)
        if key_at == -1:
            break
        search_from = key_at + len(_TRIPS_KEY)
        parsed = _object_around(cleaned, key_at)
        if parsed is None:
            continue
        if _carries_trip_data(parsed):
            return parsed
        if first_parsed is None:
            first_parsed = parsed
    return first_parsed


def _parse_from_last_brace(cleaned: str) -> Any | None:
    start = cleaned.rfind("{")
    if start == -1:
        return None
    parsed = _try_parse(cleaned[start:])
    return parsed if isinstance(parsed, dict) else None


_STRATEGIES = (
    ("direct", _parse_direct),
    ("trips_key", _parse_around_trips_key),
    ("last_brace", _parse_from_last_brace),
)


def extract_payload(raw_text: str | None) -> Any:
    """Return the first JSON object recovered from ``raw_text``.

    Raises:
        NoTextualOutput: when the model produced no text at all.
        ExtractionFailure: when every strategy fails.
    """
    if raw_text is None or not raw_text.strip():
        raise NoTextualOutput("The trip generator returned no text.")
    cleaned = strip_fences(raw_text)
    for name, strategy in _STRATEGIES:
        parsed = strategy(cleaned)
        if parsed is not None:
            logger.info("Recovered JSON payload using the %s strategy", name)
            return parsed
    logger.warning("Unable to recover JSON from model output (%d chars)", len(raw_text))
    raise ExtractionFailure("Failed to parse trip recommendations from the model response.", raw_text=raw_text)


def extract_trips(raw_text: str | None) -> List[Any]:
    """Return the raw trips array, distinguishing schema echoes from parse failures."""
    payload = extract_payload(raw_text)
    trips = locate_trips(payload)
    if trips is None or is_schema_echo(trips):
        logger.warning("Model returned a schema instead of trip data")
        raise SchemaEcho("The model returned the response schema instead of trip data.", raw_text=raw_text)
    return trips


def build_candidates(entries: List[Any]) -> List[TripCandidate]:
    """Coerce raw trip entries into candidates; entries that cannot be coerced are dropped."""
    candidates: List[TripCandidate] = []
    for idx, entry in enumerate(entries, 1):
        if not isinstance(entry, dict):
            logger.info("Dropping trip entry %d: expected an object, got %s", idx, type(entry).__name__)
            continue
        data: Dict[str, Any] = dict(entry)
        try:
            candidate = TripCandidate.model_validate(data)
        except ValidationError as exc:
            logger.info("Dropping trip entry %d: %s", idx, exc.errors())
            continue
        if not candidate.id:
            candidate.id = f"trip-{idx}"
        if not candidate.destination:
            candidate.destination = candidate.title
        candidates.append(candidate)
    return candidates


def extract_candidates(raw_text: str | None) -> List[TripCandidate]:
    return build_candidates(extract_trips(raw_text))
