"""HTTP client for the text-to-flashcards generation endpoint.

The endpoint takes the raw text as the request body and answers with a JSON
list of ``{front, back}`` objects. Anything else is a failed generation; a
partial batch is never returned.
"""

from __future__ import annotations

from typing import Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import GenerationFailure
from app.modules.flashcards.models.flashcards import FlashcardBatch, batch_adapter


logger = get_logger(__name__)


def parse_batch(payload: object) -> FlashcardBatch:
    """Validate a decoded response body as an ordered flashcard batch."""
    try:
        return batch_adapter.validate_python(payload)
    except ValueError as e:
        raise GenerationFailure() from e


class GenerationClient:
    """Single-attempt client for the generation endpoint."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint or settings.generation.endpoint
        self.timeout = timeout if timeout is not None else settings.generation.timeout_seconds
        self._transport = transport

    async def generate(self, text: str) -> FlashcardBatch:
        headers = {"Content-Type": "text/plain; charset=utf-8"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint, content=text.encode("utf-8"), headers=headers
                )
        except httpx.HTTPError as e:
            logger.warning(f"Generation request to {self.endpoint} failed: {e!r}")
            raise GenerationFailure() from e

        if not response.is_success:
            logger.warning(
                f"Generation endpoint answered {response.status_code}: {response.text[:200]!r}"
            )
            raise GenerationFailure()

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Generation endpoint returned a non-JSON body")
            raise GenerationFailure() from e

        batch = parse_batch(payload)
        logger.info(f"Generated {len(batch)} flashcards")
        return batch
