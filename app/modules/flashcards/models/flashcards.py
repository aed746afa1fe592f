"""Pydantic models for generated flashcards.

Note: To keep the Google Generative AI structured output schema simple and
compatible, we avoid complex constraints (min/max lengths, formats, etc.).
Normalization is applied post-generation.
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Flashcard(BaseModel):
    """Front/back flashcard pair."""

    model_config = ConfigDict(frozen=True)

    front: str
    back: str


# Ordered; index is the review position
FlashcardBatch = list[Flashcard]

batch_adapter: TypeAdapter[FlashcardBatch] = TypeAdapter(FlashcardBatch)


class GeneratedFlashcards(BaseModel):
    """Structured output requested from the generation model."""

    flashcards: list[Flashcard] = Field(default_factory=list)

