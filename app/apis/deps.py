from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.base import get_session
from app.core.db.schemas.auth import User
from app.core.db_services import FlashcardSetService
from app.modules.auth import current_active_user
from app.modules.flashcards.client import GenerationClient
from app.modules.flashcards.workflow import (
    WorkflowRegistry,
    WorkflowSession,
    workflow_registry,
)


CurrentUser = Annotated[User, Depends(current_active_user)]


def get_generation_client() -> GenerationClient:
    return GenerationClient()


def get_workflow_registry() -> WorkflowRegistry:
    return workflow_registry


async def get_set_service(
    session: AsyncSession = Depends(get_session),
) -> FlashcardSetService:
    return FlashcardSetService(session)


async def get_workflow_session(
    user: CurrentUser,
    registry: WorkflowRegistry = Depends(get_workflow_registry),
) -> WorkflowSession:
    """Resolve the caller's workflow session, starting one on first use."""
    return registry.get_or_start(user.id)
