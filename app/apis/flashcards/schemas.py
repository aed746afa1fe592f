from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.modules.flashcards.models.flashcards import Flashcard


class GenerateRequest(BaseModel):
    text: str = Field(..., description="Free-form text to turn into flashcards")


class SaveRequest(BaseModel):
    name: str = Field(..., description="Name for the new flashcard set")


class NoticeRead(BaseModel):
    level: str
    message: str


class WorkflowView(BaseModel):
    state: str
    flashcards: list[Flashcard] = Field(default_factory=list)
    flipped: dict[int, bool] = Field(default_factory=dict)
    notice: NoticeRead | None = None


class SaveResponse(BaseModel):
    name: str
    message: str
    sets_url: str


class FlashcardSetRead(BaseModel):
    name: str
    created_at: datetime | None = None
    flashcards: list[Flashcard] = Field(default_factory=list)
