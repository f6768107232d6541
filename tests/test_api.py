import json
import random
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from tripmatch.cache import ResponseCache
from tripmatch.exceptions import SchemaEcho, UpstreamTimeout
from tripmatch.main import app, get_image_lookup, get_pipeline
from tripmatch.orchestrator import TripPipeline
from tripmatch.schemas import TripCandidate, TripsResponse
from tripmatch.tools.image_lookup import ImageLookup, fallback_image_url


def _sample_payload() -> dict:
    return {
        "budget": 20,
        "travelStyle": 30,
        "planning": 50,
        "departureLocation": "Austin, Texas",
        "destination": "Tokyo, Japan",
        "startDate": "06/01/2026",
        "endDate": "06/05/2026",
        "maxResults": 4,
    }


class StubGenerator:
    def __init__(self, text: str):
        self.text = text
        self.calls = 0

    async def generate(self, prompt):
        self.calls += 1
        return self.text


def _client_with(pipeline) -> TestClient:
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    return TestClient(app)


def teardown_function():
    app.dependency_overrides.clear()


def test_health_endpoint():
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_generate_trip_endpoint_delegates_to_pipeline():
    pipeline = AsyncMock()
    pipeline.generate = AsyncMock(
        return_value=TripsResponse(trips=[TripCandidate(id="t1", destination="Tokyo")], cached=False)
    )
    client = _client_with(pipeline)

    response = client.post("/api/generate-trip", json=_sample_payload())

    assert response.status_code == 200
    pipeline.generate.assert_awaited_once()
    request = pipeline.generate.await_args.args[0]
    assert request.departure_location == "Austin, Texas"
    assert request.max_results == 4
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["trips"][0]["id"] == "t1"
    assert "matchScore" in body["trips"][0]


def test_identical_requests_hit_the_cache():
    reply = json.dumps(
        {
            "trips": [
                {
                    "id": f"t{i}",
                    "destination": "Tokyo, Japan",
                    "startDate": "06/01/2026",
                    "endDate": "06/05/2026",
                    "matchScore": 70 + i,
                    "costBreakdown": {"flightUSD": 900, "totalUSD": 1500},
                }
                for i in range(1, 5)
            ]
        }
    )
    generator = StubGenerator(reply)
    pipeline = TripPipeline(generator, ResponseCache(ttl=60), rng=random.Random(0))
    client = _client_with(pipeline)

    first = client.post("/api/generate-trip", json=_sample_payload()).json()
    second = client.post("/api/generate-trip", json=_sample_payload()).json()

    assert (first["cached"], second["cached"]) == (False, True)
    assert [t["id"] for t in first["trips"]] == ["t4", "t3", "t2", "t1"]
    assert [t["id"] for t in second["trips"]] == [t["id"] for t in first["trips"]]
    assert generator.calls == 1


def test_out_of_range_slider_is_rejected():
    pipeline = AsyncMock()
    client = _client_with(pipeline)

    response = client.post("/api/generate-trip", json={**_sample_payload(), "budget": 140})

    assert response.status_code == 422
    pipeline.generate.assert_not_awaited()


def test_pipeline_errors_use_error_envelope():
    pipeline = AsyncMock()
    pipeline.generate = AsyncMock(side_effect=SchemaEcho("schema, not data", raw_text='{"type": "object"}'))
    client = _client_with(pipeline)

    response = client.post("/api/generate-trip", json=_sample_payload())

    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "error": "schema, not data",
        "errorCode": "schema_echo",
        "raw": '{"type": "object"}',
    }


def test_timeout_maps_to_gateway_timeout():
    pipeline = AsyncMock()
    pipeline.generate = AsyncMock(side_effect=UpstreamTimeout("took too long"))
    client = _client_with(pipeline)

    response = client.post("/api/generate-trip", json=_sample_payload())

    assert response.status_code == 504
    assert response.json()["errorCode"] == "upstream_timeout"
    assert response.json()["raw"] is None


def test_image_url_falls_back_without_credentials(monkeypatch):
    monkeypatch.delenv("UNSPLASH_ACCESS_KEY", raising=False)
    app.dependency_overrides[get_image_lookup] = lambda: ImageLookup(access_key="")
    client = TestClient(app)

    response = client.get("/api/get-image-url", params={"destination": "Tokyo", "activity": "sushi", "id": "t1"})

    assert response.status_code == 200
    assert response.json() == {
        "imageUrl": fallback_image_url("Tokyo", "sushi", "t1"),
        "source": "fallback",
    }
