from .flashcards import (
    Flashcard,
    FlashcardBatch,
    GeneratedFlashcards,
    batch_adapter,
)

__all__ = [
    "Flashcard",
    "FlashcardBatch",
    "GeneratedFlashcards",
    "batch_adapter",
]
