import logging
import threading
from datetime import datetime, timezone

from app.models.quiz import CareerOutcome, QuizAnswer, QuizQuestion, QuizSession
from app.services.llm_client import GenerateFn
from app.services.outcome_generator import generate_outcomes
from app.services.question_generator import generate_next_question
from app.services.quiz_store import QuizSessionStore, quiz_store

LOGGER = logging.getLogger(__name__)

MAX_ROUNDS = 10


class SessionNotFoundError(LookupError):
    pass


class InvalidAnswerError(ValueError):
    pass


class SessionCompletedError(RuntimeError):
    pass


class QuizService:
    """Runs the adaptive career quiz.

    A session alternates between waiting for an answer and generating the
    next question. After ``max_rounds`` answers it is completed and holds a
    ranked outcome list. Model failures never surface here: the generators
    fall back to canned content.
    """

    def __init__(
        self,
        store: QuizSessionStore | None = None,
        *,
        generate: GenerateFn | None = None,
        max_rounds: int = MAX_ROUNDS,
    ) -> None:
        self.store = store if store is not None else QuizSessionStore()
        self._generate = generate
        self.max_rounds = max_rounds

    def start(self, user_id: str) -> tuple[str, QuizQuestion]:
        thread_id, session = self.store.create(user_id)
        with self._session_lock(thread_id):
            question = generate_next_question([], [], generate=self._generate)
            session.questions.append(question)
            self.store.touch(session)
        return thread_id, question

    def submit_answer(self, thread_id: str, answer_text: str) -> QuizQuestion | list[CareerOutcome]:
        with self._session_lock(thread_id):
            session = self._require_session(thread_id)
            if session.completed:
                raise SessionCompletedError("Quiz session already completed")
            text = str(answer_text or "").strip()
            if not text:
                raise InvalidAnswerError("Answer must not be empty")

            outstanding = session.questions[-1]
            session.answers.append(
                QuizAnswer(questionId=outstanding.id, text=text, submittedAt=datetime.now(timezone.utc))
            )
            self.store.touch(session)

            if len(session.answers) >= self.max_rounds:
                outcomes = generate_outcomes(session.questions, session.answers, generate=self._generate)
                session.outcomes = outcomes
                session.completed = True
                self.store.touch(session)
                LOGGER.info("Quiz session %s completed with %d outcome(s)", thread_id, len(outcomes))
                return list(outcomes)

            question = generate_next_question(session.questions, session.answers, generate=self._generate)
            session.questions.append(question)
            self.store.touch(session)
            return question

    def get_session(self, thread_id: str) -> QuizSession | None:
        lock = self.store.lock_for(thread_id)
        if lock is None:
            return None
        with lock:
            session = self.store.get(thread_id)
            return session.model_copy(deep=True) if session is not None else None

    def get_outcome_detail(self, thread_id: str, index: int) -> CareerOutcome | None:
        session = self.get_session(thread_id)
        if session is None or not session.completed or not session.outcomes:
            return None
        if index < 0 or index >= len(session.outcomes):
            return None
        return session.outcomes[index]

    def session_belongs_to_user(self, thread_id: str, user_id: str) -> bool:
        session = self.store.get(thread_id)
        if session is None:
            return False
        return session.userId == str(user_id)

    def _session_lock(self, thread_id: str) -> threading.Lock:
        lock = self.store.lock_for(thread_id)
        if lock is None:
            raise SessionNotFoundError("Quiz session not found")
        return lock

    def _require_session(self, thread_id: str) -> QuizSession:
        session = self.store.get(thread_id)
        if session is None:
            raise SessionNotFoundError("Quiz session not found")
        return session


quiz_service = QuizService(quiz_store)
