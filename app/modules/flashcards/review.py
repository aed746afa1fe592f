"""Volatile review state for the current batch: the cards and which are flipped."""

from __future__ import annotations

from typing import Iterable

from app.modules.flashcards.models.flashcards import Flashcard, FlashcardBatch


class ReviewStateStore:
    """Holds one generated batch and its per-card flip state.

    Indices absent from the flip map are showing their front.
    """

    def __init__(self) -> None:
        self._batch: tuple[Flashcard, ...] = ()
        self._flipped: dict[int, bool] = {}

    @property
    def batch(self) -> FlashcardBatch:
        return list(self._batch)

    @property
    def flipped(self) -> dict[int, bool]:
        return dict(self._flipped)

    def __len__(self) -> int:
        return len(self._batch)

    def is_empty(self) -> bool:
        return not self._batch

    def set_batch(self, batch: Iterable[Flashcard]) -> None:
        self._batch = tuple(batch)
        self._flipped = {}

    def toggle_flip(self, index: int) -> bool:
        if not 0 <= index < len(self._batch):
            raise IndexError(
                f"card index {index} out of range for batch of {len(self._batch)}"
            )
        value = not self._flipped.get(index, False)
        self._flipped[index] = value
        return value

    def is_flipped(self, index: int) -> bool:
        return self._flipped.get(index, False)

    def clear(self) -> None:
        self._batch = ()
        self._flipped = {}
