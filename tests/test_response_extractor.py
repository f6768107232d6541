"""Regression tests for recovering trip JSON from messy model output."""

import json

import pytest

from tripmatch.agents.response_extractor import (
    balanced_end,
    build_candidates,
    extract_candidates,
    extract_payload,
    extract_trips,
    locate_trips,
)
from tripmatch.exceptions import ExtractionFailure, NoTextualOutput, SchemaEcho

DATA = {
    "trips": [
        {
            "id": "t1",
            "title": "Tokyo Food Crawl",
            "destination": "Tokyo, Japan",
            "matchScore": 91,
            "costBreakdown": {"flightUSD": 1100, "totalUSD": 2400},
        }
    ]
}

SCHEMA = {
    "type": "object",
    "properties": {
        "trips": {
            "type": "array",
            "items": {"type": "object", "properties": {"id": {"type": "string"}}},
        }
    },
}


def test_fenced_json_matches_direct_parse():
    body = json.dumps(DATA, indent=2)
    for wrapped in (f"```json\n{body}\n```", f"```\n{body}\n```", f"  ```JSON {body}```  "):
        assert extract_payload(wrapped) == json.loads(body)


def test_prose_around_object_is_ignored():
    raw = f"Sure! Here are your trips:\n{json.dumps(DATA)}\nLet me know if you need more."
    assert extract_payload(raw) == DATA


def test_schema_followed_by_data_yields_data_object():
    raw = json.dumps(SCHEMA) + json.dumps(DATA)
    assert extract_payload(raw) == DATA
    trips = extract_trips(raw)
    assert trips[0]["id"] == "t1"


def test_braces_inside_strings_do_not_break_balancing():
    payload = {
        "trips": [
            {"id": "t2", "title": 'Curly "{brace}" tour }}', "description": "ends with \\ and {"}
        ]
    }
    raw = "noise " + json.dumps(payload) + " trailing } text"
    assert extract_payload(raw) == payload


def test_nested_parameters_wrapper_is_unwrapped():
    raw = json.dumps({"name": "return_trips", "parameters": {"trips": DATA["trips"]}})
    assert locate_trips(extract_payload(raw)) == DATA["trips"]


def test_one_level_nested_trips_array_is_found():
    assert locate_trips({"result": {"trips": [{"id": "x"}]}}) == [{"id": "x"}]
    assert locate_trips({"result": {"inner": {"trips": []}}}) is None


def test_quoted_trips_mention_in_prose_is_skipped():
    raw = 'preface with a stray "trips" mention {not json} then {"trips": []}'
    assert extract_payload(raw) == {"trips": []}


def test_unbalanced_quote_in_preamble_does_not_hide_trips_key():
    raw = 'Pack for 5" of rain and a "light" jacket.\n' + json.dumps(DATA)
    assert extract_payload(raw) == DATA
    assert [c.id for c in extract_candidates(raw)] == ["t1"]


def test_unbalanced_quote_before_schema_then_data():
    raw = 'Bring a 13" laptop.\n' + json.dumps(SCHEMA) + "\n" + json.dumps(DATA) + "\nEnjoy!"
    assert extract_payload(raw) == DATA


def test_last_brace_strategy_recovers_trailing_object():
    assert extract_payload('oops {"x": 1, "y": {"z": 2}') == {"z": 2}


def test_truncated_json_raises_extraction_failure():
    raw = '{"trips": [{"id": "t1", "title": "Cut off'
    with pytest.raises(ExtractionFailure) as excinfo:
        extract_payload(raw)
    assert excinfo.value.raw_text == raw
    assert excinfo.value.error_code == "json_parse_failure"


def test_empty_text_is_no_textual_output():
    with pytest.raises(NoTextualOutput):
        extract_payload("   ")
    with pytest.raises(NoTextualOutput):
        extract_payload(None)


def test_schema_only_reply_raises_schema_echo():
    with pytest.raises(SchemaEcho) as excinfo:
        extract_trips(json.dumps(SCHEMA))
    assert excinfo.value.error_code == "schema_echo"
    assert "properties" in excinfo.value.raw_text


def test_example_shaped_echo_is_detected():
    echo = {"trips": [{"id": "string", "title": "string", "destination": "string (City, Country)", "startDate": "MM/DD/YYYY"}]}
    with pytest.raises(SchemaEcho):
        extract_trips(json.dumps(echo))


def test_state_machine_helpers():
    text = 'x {"a": "}", "b": {"c": 1}} y'
    start = text.index("{")
    assert balanced_end(text, start) == len(text) - 2
    assert balanced_end("{ unterminated", 0) is None
    assert balanced_end("abc", 0) is None


def test_build_candidates_coerces_loose_fields():
    entries = [
        {
            "title": "Kyoto Temples",
            "budgetUSD": "$1,250",
            "itinerary": '["Fushimi Inari", "Kinkaku-ji"]',
            "costBreakdown": '{"flightUSD": "900", "hotelNights": 0, "totalUSD": "1,250"}',
            "matchScore": 140,
            "durationDays": 0,
        },
        "not an object",
        {"id": "t9", "destination": "Osaka", "latitude": "n/a", "activities": "Dotonbori; Osaka Castle"},
    ]
    candidates = build_candidates(entries)
    assert [c.id for c in candidates] == ["trip-1", "t9"]

    first = candidates[0]
    assert first.destination == "Kyoto Temples"
    assert first.budget_usd == 1250.0
    assert first.itinerary == ["Fushimi Inari", "Kinkaku-ji"]
    assert first.cost_breakdown.flight_usd == 900.0
    assert first.cost_breakdown.hotel_nights == 1
    assert first.cost_breakdown.total_usd == 1250.0
    assert first.match_score == 100.0
    assert first.duration_days == 1

    second = candidates[1]
    assert second.latitude is None
    assert second.activities == ["Dotonbori", "Osaka Castle"]
    assert second.match_score == 75.0


def test_extract_candidates_end_to_end():
    raw = "```json\n" + json.dumps(DATA) + "\n```"
    candidates = extract_candidates(raw)
    assert len(candidates) == 1
    assert candidates[0].cost_breakdown.total_usd == 2400.0


def test_non_finite_numbers_drop_only_their_entry():
    huge = "1" + "0" * 400
    raw = (
        '{"trips": ['
        '{"id": "t1", "destination": "Tokyo", "durationDays": 1e999},'
        '{"id": "t2", "destination": "Tokyo", "costBreakdown": {"hotelNights": Infinity}},'
        '{"id": "t3", "destination": "Tokyo", "durationDays": ' + huge + "},"
        '{"id": "t4", "destination": "Tokyo", "budgetUSD": 1e999, "latitude": -1e999, "matchScore": NaN}'
        "]}"
    )
    candidates = extract_candidates(raw)
    assert [c.id for c in candidates] == ["t4"]
    assert candidates[0].budget_usd == 0.0
    assert candidates[0].latitude is None
    assert candidates[0].match_score == 0.0
