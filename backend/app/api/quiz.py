from fastapi import APIRouter, Depends, HTTPException, status

from app.api.security import get_current_user
from app.models.quiz import (
    CareerOutcome,
    QuizQuestion,
    QuizSession,
    QuizStartResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
)
from app.services.quiz_service import (
    InvalidAnswerError,
    QuizService,
    SessionCompletedError,
    SessionNotFoundError,
    quiz_service,
)

router = APIRouter(prefix="/api/ai-quiz", tags=["Career Quiz"])


def get_quiz_service() -> QuizService:
    return quiz_service


@router.post("/start", response_model=QuizStartResponse, status_code=status.HTTP_201_CREATED)
def start_quiz(
    current_user: dict = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
) -> QuizStartResponse:
    thread_id, question = service.start(str(current_user["userId"]))
    return QuizStartResponse(threadId=thread_id, question=question)


@router.post("/submit", response_model=QuizSubmitResponse)
def submit_quiz_answer(
    payload: QuizSubmitRequest,
    current_user: dict = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
) -> QuizSubmitResponse:
    _require_owner(service, payload.threadId, str(current_user["userId"]))
    try:
        result = service.submit_answer(payload.threadId, payload.answer)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except InvalidAnswerError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SessionCompletedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if isinstance(result, QuizQuestion):
        return QuizSubmitResponse(threadId=payload.threadId, completed=False, question=result)
    return QuizSubmitResponse(threadId=payload.threadId, completed=True, outcomes=result)


@router.get("/progress/{threadId}", response_model=QuizSession)
def get_quiz_progress(
    threadId: str,
    current_user: dict = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
) -> QuizSession:
    _require_owner(service, threadId, str(current_user["userId"]))
    session = service.get_session(threadId)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz session not found")
    return session


@router.get("/{threadId}/outcomes/{index}", response_model=CareerOutcome)
def get_quiz_outcome(
    threadId: str,
    index: int,
    current_user: dict = Depends(get_current_user),
    service: QuizService = Depends(get_quiz_service),
) -> CareerOutcome:
    _require_owner(service, threadId, str(current_user["userId"]))
    outcome = service.get_outcome_detail(threadId, index)
    if outcome is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Career outcome not found")
    return outcome


def _require_owner(service: QuizService, thread_id: str, user_id: str) -> None:
    if not service.session_belongs_to_user(thread_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz session not found")
