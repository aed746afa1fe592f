"""Database service classes for flashcard sets."""

from __future__ import annotations

from typing import Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.core.db.schemas.flashcards import FlashcardSet, Flashcard
from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    DuplicateNameError,
    EmptyBatchError,
    EmptySetNameError,
    PersistenceFailure,
)
from app.modules.flashcards.models.flashcards import Flashcard as PydanticFlashcard


logger = get_logger(__name__)


class FlashcardSetService:
    """Service for storing and reading a user's named flashcard sets.

    Sets are write-once: ``save`` refuses a name the user already has, both by
    checking first and through the ``(user_id, name)`` unique constraint.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, user_id: int, name: str) -> bool:
        result = await self.session.execute(
            select(FlashcardSet.id).where(
                FlashcardSet.user_id == user_id, FlashcardSet.name == name
            )
        )
        return result.scalar_one_or_none() is not None

    async def get_set(self, user_id: int, name: str) -> Optional[FlashcardSet]:
        """Get a set by name with its cards in review order."""
        result = await self.session.execute(
            select(FlashcardSet)
            .options(selectinload(FlashcardSet.flashcards))
            .where(FlashcardSet.user_id == user_id, FlashcardSet.name == name)
        )
        return result.scalar_one_or_none()

    async def list_set_names(self, user_id: int) -> list[str]:
        """Names of the user's sets, newest first."""
        result = await self.session.execute(
            select(FlashcardSet.name)
            .where(FlashcardSet.user_id == user_id)
            .order_by(FlashcardSet.created_at.desc(), FlashcardSet.id.desc())
        )
        return list(result.scalars().all())

    async def save(
        self,
        user_id: int,
        name: str,
        batch: Sequence[PydanticFlashcard],
    ) -> FlashcardSet:
        """Write ``batch`` as a new set called ``name``; never overwrites."""
        set_name = (name or "").strip()
        if not set_name:
            raise EmptySetNameError()
        if not batch:
            raise EmptyBatchError()

        try:
            if await self.exists(user_id, set_name):
                raise DuplicateNameError(set_name)

            db_set = FlashcardSet(user_id=user_id, name=set_name)
            self.session.add(db_set)
            await self.session.flush()

            for index, card in enumerate(batch):
                self.session.add(
                    Flashcard(
                        flashcard_set_id=db_set.id,
                        front=card.front,
                        back=card.back,
                        order_index=index,
                    )
                )

            await self.session.commit()
        except IntegrityError as e:
            # Lost the race against a concurrent save of the same name
            await self.session.rollback()
            if await self._exists_after_rollback(user_id, set_name):
                raise DuplicateNameError(set_name) from e
            logger.error(f"Integrity error saving set {set_name!r}: {e}")
            raise PersistenceFailure() from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Saving set {set_name!r} failed: {e}")
            raise PersistenceFailure() from e

        result = await self.session.execute(
            select(FlashcardSet)
            .options(selectinload(FlashcardSet.flashcards))
            .where(FlashcardSet.id == db_set.id)
        )
        return result.scalar_one()

    async def _exists_after_rollback(self, user_id: int, name: str) -> bool:
        try:
            return await self.exists(user_id, name)
        except SQLAlchemyError as e:
            raise PersistenceFailure() from e
