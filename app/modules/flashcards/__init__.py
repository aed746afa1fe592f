"""Flashcards module exports."""

from .models.flashcards import Flashcard, FlashcardBatch
from .client import GenerationClient
from .review import ReviewStateStore
from .workflow import (
    FlashcardWorkflow,
    WorkflowOutcome,
    WorkflowRegistry,
    WorkflowSession,
    WorkflowState,
)

__all__ = [
    "Flashcard",
    "FlashcardBatch",
    "GenerationClient",
    "ReviewStateStore",
    "FlashcardWorkflow",
    "WorkflowOutcome",
    "WorkflowRegistry",
    "WorkflowSession",
    "WorkflowState",
]
