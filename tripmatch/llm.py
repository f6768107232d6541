# tripmatch/llm.py
from __future__ import annotations

import logging
import os
import time
from typing import Protocol

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from tripmatch.agents.prompt_builder import Prompt
from tripmatch.config import Settings
from tripmatch.exceptions import NoTextualOutput, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRIPMATCH_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False


class TextGenerator(Protocol):
    async def generate(self, prompt: Prompt) -> str:
        """Return the raw text the model produced for ``prompt``."""


class OpenAITextGenerator:
    """Chat-completions backed generator that asks for JSON-only replies."""

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        timeout: float = 50.0,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        if client is not None:
            self._client: AsyncOpenAI | None = client
        elif api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        else:
            self._client = None
            logger.warning("OPENAI_API_KEY not set; trip generation requests will fail with upstream_unavailable")

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAITextGenerator":
        return cls(
            settings.openai_api_key,
            model=settings.model,
            temperature=settings.temperature,
            timeout=settings.llm_timeout_seconds,
        )

    async def generate(self, prompt: Prompt) -> str:
        if self._client is None:
            raise UpstreamUnavailable("Trip generation is not configured (missing OPENAI_API_KEY).")

        logger.info(
            "Invoking LLM model %s (prompt %d chars)",
            self.model,
            len(prompt.system_text) + len(prompt.user_text),
        )
        started = time.perf_counter()
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                messages=prompt.messages(),
                temperature=self.temperature,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
        except APITimeoutError as exc:
            raise UpstreamTimeout(f"Trip generation timed out after {self.timeout:.0f}s.") from exc
        except OpenAIError as exc:
            logger.warning("LLM call failed: %s", exc)
            raise UpstreamUnavailable(f"Trip generation failed: {exc}") from exc

        elapsed = time.perf_counter() - started
        raw = resp.choices[0].message.content if resp.choices else None
        if not raw or not raw.strip():
            raise NoTextualOutput("The trip generator returned no text.")
        logger.info("LLM replied in %.1fs with %d chars", elapsed, len(raw))
        return raw
