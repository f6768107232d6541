from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tripmatch.config import Settings
from tripmatch.exceptions import TripPipelineError
from tripmatch.orchestrator import TripPipeline
from tripmatch.schemas import ErrorResponse, ImageUrlResponse, PreferenceRequest, TripsResponse
from tripmatch.tools.image_lookup import ImageLookup

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_pipeline() -> TripPipeline:
    """Process-wide pipeline; its cache is shared by every request."""
    return TripPipeline.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_image_lookup() -> ImageLookup:
    return ImageLookup(access_key=get_settings().unsplash_access_key)


app = FastAPI(title="Tripmatch Trip Recommendation API")

# The mobile client runs on simulators and devices with changing origins.
# Operators can narrow this via TRIPMATCH_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TripPipelineError)
async def pipeline_error_handler(request: Request, exc: TripPipelineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.exception(
            "[%s] %s URL=%s Method=%s",
            exc.error_code,
            exc.message,
            request.url.path,
            request.method,
        )
    body = ErrorResponse(error=exc.message, error_code=exc.error_code, raw=exc.raw_text)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok", "message": "Server is running"}


@app.post("/api/generate-trip", response_model=TripsResponse)
async def generate_trip(
    payload: Dict[str, Any] = Body(...),
    pipeline: TripPipeline = Depends(get_pipeline),
) -> TripsResponse:
    """Primary endpoint consumed by the mobile client."""
    try:
        request = PreferenceRequest.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from exc
    return await pipeline.generate(request)


@app.get("/api/get-image-url", response_model=ImageUrlResponse)
async def get_image_url(
    destination: str = Query(..., min_length=1),
    activity: str | None = Query(None),
    trip_id: str = Query("", alias="id"),
    lookup: ImageLookup = Depends(get_image_lookup),
) -> ImageUrlResponse:
    url, source = await lookup.lookup(destination, activity, trip_id)
    return ImageUrlResponse(image_url=url, source=source)
