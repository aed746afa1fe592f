"""Generate -> review -> save workflow for a single user session.

``WorkflowSession`` is the per-user context (identity, review state, current
state). ``FlashcardWorkflow`` sequences the generation client, the review
store and duplicate-checked persistence over one session, converting every
workflow error into a ``WorkflowOutcome`` with a user-visible notice.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from app.core.config import settings
from app.core.logging import get_logger
from app.modules.flashcards.errors import (
    DuplicateNameError,
    EmptyBatchError,
    EmptySetNameError,
    EmptyTextError,
    FlashcardsError,
    GenerationFailure,
    InvalidTransitionError,
    MissingIdentityError,
    WorkflowBusyError,
)
from app.modules.flashcards.models.flashcards import FlashcardBatch
from app.modules.flashcards.review import ReviewStateStore


logger = get_logger(__name__)

SAVED_MESSAGE = "Flashcards saved successfully!"


class WorkflowState(str, enum.Enum):
    IDLE = "idle"
    GENERATING = "generating"
    REVIEWING = "reviewing"
    SAVING = "saving"
    SAVED = "saved"


BUSY_STATES = (WorkflowState.GENERATING, WorkflowState.SAVING)


class BatchGenerator(Protocol):
    async def generate(self, text: str) -> FlashcardBatch: ...


class SetPersistence(Protocol):
    async def save(self, user_id: int, name: str, batch: FlashcardBatch) -> object: ...


@dataclass
class Notice:
    level: str  # "info", "success" or "error"
    message: str


@dataclass
class WorkflowOutcome:
    ok: bool
    state: WorkflowState
    notice: Optional[Notice] = None
    error: Optional[FlashcardsError] = None
    next_url: Optional[str] = None


@dataclass
class WorkflowSession:
    """Everything one user's workflow owns between requests."""

    user_id: Optional[int]
    review: ReviewStateStore = field(default_factory=ReviewStateStore)
    state: WorkflowState = WorkflowState.IDLE
    last_notice: Optional[Notice] = None
    saved_set_name: Optional[str] = None
    last_active: float = field(default_factory=time.monotonic)

    @property
    def busy(self) -> bool:
        return self.state in BUSY_STATES

    def close(self) -> None:
        self.review.clear()
        self.state = WorkflowState.IDLE
        self.last_notice = None
        self.saved_set_name = None


class FlashcardWorkflow:
    def __init__(
        self,
        session: WorkflowSession,
        generator: Optional[BatchGenerator] = None,
        persistence: Optional[SetPersistence] = None,
        *,
        sets_url: str = "/flashcards",
    ) -> None:
        self.session = session
        self.generator = generator
        self.persistence = persistence
        self.sets_url = sets_url

    @property
    def state(self) -> WorkflowState:
        return self.session.state

    def _notify(self, level: str, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.session.last_notice = notice
        return notice

    def _reject(self, error: FlashcardsError) -> WorkflowOutcome:
        """Refuse an action without changing state."""
        logger.info(
            f"Rejected in state {self.state.value}: {error.message}",
            extra={"user_id": self.session.user_id},
        )
        return WorkflowOutcome(
            ok=False,
            state=self.state,
            notice=self._notify("error", error.message),
            error=error,
        )

    def _guard(self) -> Optional[FlashcardsError]:
        if self.session.busy:
            return WorkflowBusyError()
        if self.state is WorkflowState.SAVED:
            return InvalidTransitionError(
                "This flashcard set has already been saved. Start a new session."
            )
        return None

    async def submit(self, text: str) -> WorkflowOutcome:
        blocked = self._guard()
        if blocked:
            return self._reject(blocked)
        if not text or not text.strip():
            return self._reject(EmptyTextError())
        if self.generator is None:
            return self._reject(GenerationFailure())

        session = self.session
        # A new generation discards the previous batch
        session.review.clear()
        session.state = WorkflowState.GENERATING
        try:
            batch = await self.generator.generate(text)
        except GenerationFailure as e:
            session.state = WorkflowState.IDLE
            logger.warning(
                f"Generation failed: {e.__cause__!r}",
                extra={"user_id": session.user_id},
            )
            return WorkflowOutcome(
                ok=False,
                state=session.state,
                notice=self._notify("error", e.message),
                error=e,
            )
        except BaseException:
            session.state = WorkflowState.IDLE
            raise

        session.review.set_batch(batch)
        session.state = WorkflowState.REVIEWING
        return WorkflowOutcome(
            ok=True,
            state=session.state,
            notice=self._notify("info", f"Generated {len(batch)} flashcards."),
        )

    def toggle(self, index: int) -> WorkflowOutcome:
        if self.state is not WorkflowState.REVIEWING:
            return self._reject(
                InvalidTransitionError("There are no flashcards to review.")
            )
        self.session.review.toggle_flip(index)
        return WorkflowOutcome(ok=True, state=self.state)

    async def submit_save(self, name: str) -> WorkflowOutcome:
        blocked = self._guard()
        if blocked:
            return self._reject(blocked)
        session = self.session
        if session.state is not WorkflowState.REVIEWING:
            return self._reject(
                InvalidTransitionError("Generate flashcards before saving them.")
            )
        set_name = (name or "").strip()
        if not set_name:
            return self._reject(EmptySetNameError())
        batch = session.review.batch
        if not batch:
            return self._reject(EmptyBatchError())
        if session.user_id is None or self.persistence is None:
            return self._reject(MissingIdentityError())

        session.state = WorkflowState.SAVING
        try:
            await self.persistence.save(session.user_id, set_name, batch)
        except DuplicateNameError as e:
            session.state = WorkflowState.REVIEWING
            logger.info(
                f"Set name {set_name!r} already taken",
                extra={"user_id": session.user_id},
            )
            return WorkflowOutcome(
                ok=False,
                state=session.state,
                notice=self._notify("error", e.message),
                error=e,
            )
        except FlashcardsError as e:
            session.state = WorkflowState.REVIEWING
            logger.error(
                f"Saving set {set_name!r} failed: {e.__cause__!r}",
                extra={"user_id": session.user_id},
            )
            return WorkflowOutcome(
                ok=False,
                state=session.state,
                notice=self._notify("error", e.message),
                error=e,
            )
        except BaseException:
            session.state = WorkflowState.REVIEWING
            raise

        session.review.clear()
        session.saved_set_name = set_name
        session.state = WorkflowState.SAVED
        logger.info(
            f"Saved set {set_name!r} with {len(batch)} cards",
            extra={"user_id": session.user_id},
        )
        return WorkflowOutcome(
            ok=True,
            state=session.state,
            notice=self._notify("success", SAVED_MESSAGE),
            next_url=self.sets_url,
        )


class WorkflowRegistry:
    """In-memory map of user id to their workflow session.

    Sessions untouched for ``idle_seconds`` are dropped on the next lookup,
    unless a generate or save is still in flight for them.
    """

    def __init__(
        self,
        idle_seconds: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sessions: dict[int, WorkflowSession] = {}
        self.idle_seconds = idle_seconds
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def _expire_idle(self, now: float) -> None:
        if self.idle_seconds is None:
            return
        stale = [
            user_id
            for user_id, session in self._sessions.items()
            if not session.busy and now - session.last_active > self.idle_seconds
        ]
        for user_id in stale:
            self._sessions.pop(user_id).close()
            logger.debug("Idle workflow session expired", extra={"user_id": user_id})

    def get_or_start(self, user_id: int) -> WorkflowSession:
        now = self._clock()
        self._expire_idle(now)
        session = self._sessions.get(user_id)
        if session is None:
            session = WorkflowSession(user_id=user_id)
            self._sessions[user_id] = session
            logger.debug("Workflow session started", extra={"user_id": user_id})
        session.last_active = now
        return session

    def end(self, user_id: int) -> None:
        """Tear down a session; a generate or save in flight cannot be abandoned."""
        session = self._sessions.get(user_id)
        if session is None:
            return
        if session.busy:
            raise WorkflowBusyError()
        del self._sessions[user_id]
        session.close()
        logger.debug("Workflow session ended", extra={"user_id": user_id})


workflow_registry = WorkflowRegistry(settings.generation.workflow_idle_seconds)
