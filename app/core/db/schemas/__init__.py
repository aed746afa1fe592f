# Import models so Base metadata is aware of them
from .auth import User  # noqa: F401
from .flashcards import FlashcardSet, Flashcard  # noqa: F401
