"""Meter reading extraction using the OpenAI vision models.

The measure service depends only on the ``ReadingExtractor`` protocol:
given raw image bytes and their mime type it returns an integer
reading or raises one of the extraction errors from
``app.core.errors``.  ``OpenAIReadingExtractor`` is the production
implementation; tests substitute a deterministic fake.

HEIC/HEIF uploads are converted to JPEG before the call (see
``app.utils.image_processing``); the stored image is left untouched.

The extractor makes exactly one call per upload.  The OpenAI client is
built with ``max_retries=0`` and the configured timeout; callers that
need resilience retry at their own level.

Diagnostic logging can be enabled by setting env var EXTRACTION_DEBUG=1.
"""

from __future__ import annotations

import base64
import logging
import os
import re
from typing import Any, Optional, Protocol

import openai
from openai import AsyncOpenAI
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.errors import (
    ExtractionNoNumericResultError,
    ExtractionOutOfRangeError,
    ExtractionUnavailableError,
)
from app.utils.helpers import is_int32_open
from app.utils.image_processing import prepare_for_vision
from app.utils.prompts import get_default_reading_prompt


logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class ReadingExtractor(Protocol):
    """Capability that turns a meter photograph into an integer reading."""

    async def extract_reading(self, data: bytes, mime_type: str) -> int:
        ...


def parse_reading(text: Optional[str]) -> int:
    """Parse the model answer into a bounded integer.

    Surrounding whitespace, quotes and backticks are ignored; anything
    else that is not a plain signed integer is rejected.
    """
    cleaned = (text or "").strip().strip("`'\"").strip()
    if not _INTEGER_RE.match(cleaned):
        raise ExtractionNoNumericResultError()
    value = int(cleaned)
    if not is_int32_open(value):
        raise ExtractionOutOfRangeError()
    return value


class OpenAIReadingExtractor:
    """``ReadingExtractor`` backed by the Chat Completions API."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None, prompt: Optional[str] = None) -> None:
        self.model: str = settings.EXTRACTION_MODEL
        self.prompt: str = prompt or get_default_reading_prompt()
        self.debug: bool = os.getenv("EXTRACTION_DEBUG", "0").lower() in {"1", "true", "yes"}
        self._api_key = settings.OPENAI_API_KEY
        self._timeout = settings.EXTRACTION_TIMEOUT_SECONDS
        self._client = client
        if self.debug:
            logger.info("[extraction:init] model=%s", self.model)

    def _get_client(self) -> AsyncOpenAI:
        # Built lazily: the SDK raises at construction when no key is configured.
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        return self._client

    def _image_to_base64(self, data: bytes) -> str:
        """Encode raw image bytes as a base64 string."""
        return base64.b64encode(data).decode("utf-8")

    async def _complete(self, data: bytes, mime_type: str) -> Any:
        data_uri = f"data:{mime_type};base64,{self._image_to_base64(data)}"
        return await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {"type": "image_url", "image_url": {"url": data_uri}},
                    ],
                }
            ],
        )

    async def extract_reading(self, data: bytes, mime_type: str) -> int:
        if self.debug:
            logger.info("[extraction] starting model=%s mime=%s size=%d", self.model, mime_type, len(data))
        data, mime_type = await run_in_threadpool(prepare_for_vision, data, mime_type)
        try:
            response = await self._complete(data, mime_type)
        except openai.OpenAIError as exc:
            logger.error("[extraction] vision call failed model=%s err=%r", self.model, exc)
            raise ExtractionUnavailableError(f"vision call failed: {exc!r}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            logger.error("[extraction] vision call returned no choices model=%s", self.model)
            raise ExtractionUnavailableError("vision call returned no choices")
        text = choices[0].message.content
        if self.debug:
            logger.info("[extraction] raw answer=%r", text)
        value = parse_reading(text)
        logger.info("[extraction] extracted reading=%d model=%s", value, self.model)
        return value
