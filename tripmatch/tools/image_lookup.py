from __future__ import annotations

import logging
import os
import re
from typing import Optional, Tuple

import httpx

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

FALLBACK_TEMPLATE = "https://picsum.photos/seed/{seed}/800/400"
SEARCH_ENDPOINT = "https://api.unsplash.com/search/photos"

_GENERIC_WORDS = re.compile(r"\b(United States|USA|US|city|town|state|county)\b", re.IGNORECASE)
_TRAILING_REGION = re.compile(r",\s*\w+$")


def fallback_seed(destination: str, activity: str | None, trip_id: str) -> int:
    """32-bit rolling hash of ``destination-activity-id``, as the mobile client computes it."""
    text = f"{destination}-{activity or ''}-{trip_id}"
    units = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(units), 2):
        code = units[i] | (units[i + 1] << 8)
        h = ((h << 5) - h + code) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def fallback_image_url(destination: str, activity: str | None, trip_id: str) -> str:
    return FALLBACK_TEMPLATE.format(seed=fallback_seed(destination, activity, trip_id))


def clean_destination(destination: str) -> str:
    cleaned = _GENERIC_WORDS.sub("", destination or "").strip()
    cleaned = _TRAILING_REGION.sub("", cleaned).strip(" ,")
    return cleaned or (destination or "").strip()


class ImageLookup:
    """Destination photo search with a deterministic placeholder fallback."""

    def __init__(self, *, access_key: Optional[str] = None, timeout: float = 5.0):
        self.access_key = access_key or os.getenv("UNSPLASH_ACCESS_KEY")
        self.timeout = timeout

    async def lookup(self, destination: str, activity: str | None = None, trip_id: str = "") -> Tuple[str, str]:
        """Return ``(url, source)`` where source is ``"unsplash"`` or ``"fallback"``."""
        fallback = fallback_image_url(destination, activity, trip_id)
        if not self.access_key:
            return fallback, "fallback"

        query = " ".join(part for part in (clean_destination(destination), activity or "") if part)
        params = {"query": query, "per_page": 1, "orientation": "landscape"}
        headers = {"Authorization": f"Client-ID {self.access_key}", "Accept-Version": "v1"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(SEARCH_ENDPOINT, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.warning("Photo search failed for %r; using fallback", query, exc_info=True)
            return fallback, "fallback"

        results = data.get("results") if isinstance(data, dict) else None
        if isinstance(results, list) and results and isinstance(results[0], dict):
            urls = results[0].get("urls")
            urls = urls if isinstance(urls, dict) else {}
            url = urls.get("regular") or urls.get("small")
            if isinstance(url, str) and url:
                return url, "unsplash"
        logger.info("No photo found for %r; using fallback", query)
        return fallback, "fallback"
