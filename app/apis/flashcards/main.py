from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from app.apis.deps import (
    CurrentUser,
    get_generation_client,
    get_set_service,
    get_workflow_registry,
    get_workflow_session,
)
from app.core.config import settings
from app.core.db_services import FlashcardSetService
from app.core.logging import get_logger
from app.modules.flashcards.client import GenerationClient
from app.modules.flashcards.errors import (
    DuplicateNameError,
    EmptyTextError,
    FlashcardValidationError,
    FlashcardsError,
    GenerationFailure,
    InvalidTransitionError,
    MissingIdentityError,
    PersistenceFailure,
    WorkflowBusyError,
)
from app.modules.flashcards.generator import generate_flashcards
from app.modules.flashcards.models.flashcards import Flashcard
from app.modules.flashcards.workflow import (
    FlashcardWorkflow,
    WorkflowOutcome,
    WorkflowRegistry,
    WorkflowSession,
    WorkflowState,
)
from .schemas import (
    FlashcardSetRead,
    GenerateRequest,
    NoticeRead,
    SaveRequest,
    SaveResponse,
    WorkflowView,
)


router = APIRouter()

logger = get_logger(__name__)

SETS_URL = f"/{settings.app.version}/flashcards/sets"

# First match wins, so subclasses go before their bases
_ERROR_STATUS: list[tuple[type[FlashcardsError], int]] = [
    (FlashcardValidationError, status.HTTP_400_BAD_REQUEST),
    (MissingIdentityError, status.HTTP_401_UNAUTHORIZED),
    (DuplicateNameError, status.HTTP_409_CONFLICT),
    (WorkflowBusyError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (GenerationFailure, status.HTTP_502_BAD_GATEWAY),
    (PersistenceFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _raise_for_outcome(outcome: WorkflowOutcome) -> None:
    if outcome.ok:
        return
    error = outcome.error or FlashcardsError()
    for error_type, code in _ERROR_STATUS:
        if isinstance(error, error_type):
            raise HTTPException(status_code=code, detail=error.message)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message
    )


def _view(session: WorkflowSession) -> WorkflowView:
    notice = session.last_notice
    return WorkflowView(
        state=session.state.value,
        flashcards=session.review.batch,
        flipped=session.review.flipped,
        notice=NoticeRead(level=notice.level, message=notice.message)
        if notice
        else None,
    )


@router.post(
    "/api/generate",
    response_model=list[Flashcard],
    tags=["generation"],
)
async def generate(request: Request) -> list[Flashcard]:
    """Generation endpoint: raw text body in, ordered ``{front, back}`` list out."""
    text = (await request.body()).decode("utf-8", errors="replace")
    if not text.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=EmptyTextError.message
        )
    try:
        return await generate_flashcards(text)
    except Exception as e:
        logger.exception(f"Flashcard generation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=GenerationFailure.message
        ) from e


@router.get(
    f"/{settings.app.version}/flashcards/workflow",
    response_model=WorkflowView,
    tags=["workflow"],
)
async def get_workflow(
    session: WorkflowSession = Depends(get_workflow_session),
) -> WorkflowView:
    return _view(session)


@router.post(
    f"/{settings.app.version}/flashcards/workflow/generate",
    response_model=WorkflowView,
    tags=["workflow"],
)
async def submit_text(
    req: GenerateRequest,
    session: WorkflowSession = Depends(get_workflow_session),
    client: GenerationClient = Depends(get_generation_client),
) -> WorkflowView:
    workflow = FlashcardWorkflow(session, client, sets_url=SETS_URL)
    outcome = await workflow.submit(req.text)
    _raise_for_outcome(outcome)
    return _view(session)


@router.post(
    f"/{settings.app.version}/flashcards/workflow/cards/{{index:int}}/flip",
    response_model=WorkflowView,
    tags=["workflow"],
)
async def flip_card(
    index: int,
    session: WorkflowSession = Depends(get_workflow_session),
) -> WorkflowView:
    if session.state is WorkflowState.REVIEWING and not 0 <= index < len(
        session.review
    ):
        raise HTTPException(status_code=404, detail="Flashcard not found")
    workflow = FlashcardWorkflow(session, sets_url=SETS_URL)
    _raise_for_outcome(workflow.toggle(index))
    return _view(session)


@router.post(
    f"/{settings.app.version}/flashcards/workflow/save",
    response_model=SaveResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["workflow"],
)
async def save_set(
    req: SaveRequest,
    user: CurrentUser,
    session: WorkflowSession = Depends(get_workflow_session),
    service: FlashcardSetService = Depends(get_set_service),
    registry: WorkflowRegistry = Depends(get_workflow_registry),
) -> SaveResponse:
    workflow = FlashcardWorkflow(session, persistence=service, sets_url=SETS_URL)
    outcome = await workflow.submit_save(req.name)
    _raise_for_outcome(outcome)
    saved_name = session.saved_set_name or req.name.strip()

    # Saved is terminal; the next request starts a fresh session
    registry.end(user.id)
    return SaveResponse(
        name=saved_name,
        message=outcome.notice.message if outcome.notice else "",
        sets_url=outcome.next_url or SETS_URL,
    )


@router.delete(
    f"/{settings.app.version}/flashcards/workflow",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["workflow"],
)
async def end_workflow(
    user: CurrentUser,
    registry: WorkflowRegistry = Depends(get_workflow_registry),
) -> Response:
    try:
        registry.end(user.id)
    except WorkflowBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    SETS_URL,
    response_model=list[str],
    tags=["flashcards"],
)
async def list_flashcard_sets(
    user: CurrentUser,
    service: FlashcardSetService = Depends(get_set_service),
) -> list[str]:
    return await service.list_set_names(user.id)


@router.get(
    f"{SETS_URL}/{{name:path}}",
    response_model=FlashcardSetRead,
    tags=["flashcards"],
)
async def get_flashcard_set(
    name: str,
    user: CurrentUser,
    service: FlashcardSetService = Depends(get_set_service),
) -> FlashcardSetRead:
    s = await service.get_set(user.id, name)
    if not s:
        raise HTTPException(status_code=404, detail="Flashcard set not found")
    return FlashcardSetRead(
        name=s.name,
        created_at=s.created_at,
        flashcards=[Flashcard(front=c.front, back=c.back) for c in s.flashcards],
    )
