"""Error taxonomy for the generate -> review -> save workflow.

Each error carries the message shown to the user; the workflow controller
turns them into outcomes and the API layer into HTTP responses.
"""

from __future__ import annotations


class FlashcardsError(Exception):
    """Base class for flashcard workflow errors."""

    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class FlashcardValidationError(FlashcardsError):
    """Input rejected locally, before any external call."""


class EmptyTextError(FlashcardValidationError):
    message = "Please enter some text to generate flashcards."


class EmptySetNameError(FlashcardValidationError):
    message = "Please enter a name for your flashcard set."


class EmptyBatchError(FlashcardValidationError):
    message = "There are no flashcards to save."


class GenerationFailure(FlashcardsError):
    message = "An error occurred while generating flashcards. Please try again."


class DuplicateNameError(FlashcardsError):
    message = "A flashcard set with this name already exists."

    def __init__(self, name: str, message: str | None = None) -> None:
        self.name = name
        super().__init__(message)


class PersistenceFailure(FlashcardsError):
    message = "An error occurred while saving flashcards. Please try again."


class MissingIdentityError(FlashcardsError):
    message = "Please sign in to save flashcards."


class WorkflowBusyError(FlashcardsError):
    message = "Please wait for the current request to finish."


class InvalidTransitionError(FlashcardsError):
    message = "That action is not available right now."


__all__ = [
    "FlashcardsError",
    "FlashcardValidationError",
    "EmptyTextError",
    "EmptySetNameError",
    "EmptyBatchError",
    "GenerationFailure",
    "DuplicateNameError",
    "PersistenceFailure",
    "MissingIdentityError",
    "WorkflowBusyError",
    "InvalidTransitionError",
]
