# debug_orchestrator.py
import asyncio
import json

from tripmatch.config import Settings
from tripmatch.orchestrator import TripPipeline
from tripmatch.schemas import PreferenceRequest


async def main():
    payload = {
        "budget": 20,
        "travelStyle": 30,
        "planning": 50,
        "departureLocation": "Austin, Texas",
        "destination": "Tokyo, Japan",
        "startDate": "06/01/2026",
        "endDate": "06/05/2026",
        "maxResults": 3,
    }

    # Call the pipeline directly, twice, to see the cache kick in
    pipeline = TripPipeline.from_settings(Settings.from_env())
    request = PreferenceRequest.model_validate(payload)
    result = await pipeline.generate(request)
    print("➡️ Pipeline returned:\n")
    print(json.dumps(result.model_dump(by_alias=True), indent=2))

    again = await pipeline.generate(request)
    print(f"\nSecond call cached={again.cached} trips={len(again.trips)}")


if __name__ == "__main__":
    asyncio.run(main())
