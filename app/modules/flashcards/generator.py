"""Flashcard generator using pydantic-ai and Gemini provider.

Backs the ``/api/generate`` endpoint: turns a block of free-form text into an
ordered list of front/back flashcards. The Google model and provider imports
are kept lazy to avoid import-time errors when credentials are missing.
"""

from __future__ import annotations

from pydantic_ai import Agent

from app.core.config import settings
from app.modules.flashcards.models.flashcards import (
    Flashcard,
    FlashcardBatch,
    GeneratedFlashcards,
)


def _build_google_model(model_name: str, *, thinking_budget: int | None = None):
    """Build the Google Gemini model provider (lazy import).

    thinking_budget is only applied when provided; useful for flash-lite.
    """
    from pydantic_ai.models.google import GoogleModel, GoogleModelSettings
    from pydantic_ai.providers.google import GoogleProvider

    provider = GoogleProvider(api_key=settings.gemini_api_key)
    settings_obj = None
    if thinking_budget is not None:
        settings_obj = GoogleModelSettings(
            google_thinking_config={"thinking_budget": thinking_budget}
        )
    return GoogleModel(model_name, provider=provider, settings=settings_obj)


SYSTEM_PROMPT = (
    "You are a flashcard creator. You take in text and create flashcards from it. "
    "Return a single JSON object that validates as the provided Pydantic "
    "GeneratedFlashcards model: {flashcards: [{front, back}]}. "
    "Rules: "
    "- Front: a clear, concise question or prompt about one idea from the text. "
    "- Back: an accurate answer or explanation, ideally one sentence. "
    "- Only use information present in the text; keep its language. "
    "- Order cards as the ideas appear in the text. "
    "- Plain text only, no markdown or code fences, no extra keys or commentary."
)


def _build_instruction(text: str, card_count: int) -> str:
    return (
        f"Create {card_count} flashcards from the text below, fewer if the text "
        "does not support that many. Follow the system rules and output only "
        "the JSON object.\n\n"
        f"Text:\n{text}"
    )


def _build_agent() -> Agent[None, GeneratedFlashcards]:
    model = _build_google_model(settings.generation.model_name, thinking_budget=0)
    return Agent[None, GeneratedFlashcards](
        model=model,
        output_type=GeneratedFlashcards,
        system_prompt=SYSTEM_PROMPT,
        retries=3,
    )


async def generate_flashcards(text: str) -> FlashcardBatch:
    """Generate and normalize flashcards for the given text."""
    agent = _build_agent()
    instruction = _build_instruction(text, settings.generation.card_count)
    res = await agent.run(instruction)
    return _postprocess(res.output)


def generate_flashcards_sync(text: str) -> FlashcardBatch:
    """Synchronous wrapper if an event loop is unavailable."""
    agent = _build_agent()
    instruction = _build_instruction(text, settings.generation.card_count)
    res = agent.run_sync(instruction)
    return _postprocess(res.output)


def _postprocess(generated: GeneratedFlashcards) -> FlashcardBatch:
    """Trim text, drop incomplete cards, cap the batch size; order is kept."""
    clean_cards: FlashcardBatch = []
    for c in generated.flashcards or []:
        front = (c.front or "").strip()
        back = (c.back or "").strip()
        if front and back:
            clean_cards.append(Flashcard(front=front, back=back))

    return clean_cards[: settings.generation.max_cards]
