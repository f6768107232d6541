# tripmatch/orchestrator.py
from __future__ import annotations

import asyncio
import logging
import os
import random
from typing import Optional

from tripmatch.agents.prompt_builder import build_prompt
from tripmatch.agents.response_extractor import extract_candidates
from tripmatch.agents.trip_enricher import enrich_candidates
from tripmatch.agents.trip_validator import validate_candidates
from tripmatch.cache import ResponseCache, cache_key
from tripmatch.config import Settings
from tripmatch.exceptions import UpstreamTimeout
from tripmatch.llm import OpenAITextGenerator, TextGenerator
from tripmatch.schemas import PreferenceRequest, TripsResponse

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class TripPipeline:
    """Preference request in, ranked and cost-consistent trip list out.

    One instance lives for the whole process so concurrent requests share the
    response cache. The text-generation call is the only await point and is
    bounded by ``timeout``; any failure aborts the request without a partial
    trip list.
    """

    def __init__(
        self,
        generator: TextGenerator,
        cache: ResponseCache,
        *,
        timeout: float = 50.0,
        reprice_with_estimator: bool = True,
        rng: Optional[random.Random] = None,
    ):
        self.generator = generator
        self.cache = cache
        self.timeout = timeout
        self.reprice_with_estimator = reprice_with_estimator
        self.rng = rng

    @classmethod
    def from_settings(cls, settings: Settings) -> "TripPipeline":
        return cls(
            OpenAITextGenerator.from_settings(settings),
            ResponseCache(ttl=settings.cache_ttl_seconds),
            timeout=settings.llm_timeout_seconds,
            reprice_with_estimator=settings.reprice_with_estimator,
        )

    async def generate(self, request: PreferenceRequest) -> TripsResponse:
        logger.info(
            "Trip generation start: budget=%d, style=%d, planning=%d, from=%s, to=%s, dates=%s-%s, maxResults=%d",
            request.budget,
            request.travel_style,
            request.planning,
            request.departure_location or "-",
            request.destination or "anywhere",
            request.start_date or "?",
            request.end_date or "?",
            request.max_results,
        )
        key = cache_key(request)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Cache hit; returning %d cached trips", len(cached))
            return TripsResponse(trips=cached, cached=True)

        prompt = build_prompt(request)
        try:
            raw = await asyncio.wait_for(self.generator.generate(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("Trip generation exceeded %.0fs", self.timeout)
            raise UpstreamTimeout(f"Trip generation timed out after {self.timeout:.0f}s.") from exc

        candidates = extract_candidates(raw)
        logger.info("Extracted %d trip candidates", len(candidates))
        survivors = validate_candidates(candidates, request)
        trips = enrich_candidates(
            survivors,
            request,
            reprice_with_estimator=self.reprice_with_estimator,
            rng=self.rng,
        )

        self.cache.put(key, trips)
        logger.info("Returning %d trips (requested %d)", len(trips), request.max_results)
        return TripsResponse(trips=trips, cached=False)
