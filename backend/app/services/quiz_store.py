from __future__ import annotations

import logging
import os
import threading
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from app.models.quiz import QuizSession

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _session_ttl_minutes() -> float:
    return float(os.getenv("QUIZ_SESSION_TTL_MINUTES", "0"))


class QuizSessionStore:
    """Process-local registry of quiz sessions keyed by thread id.

    The map itself is guarded by one lock; every session also gets its own
    lock so that work on one thread never blocks another. Callers mutate a
    session only while holding ``lock_for(thread_id)``.
    """

    def __init__(self, ttl_minutes: float | None = None) -> None:
        self._sessions: dict[str, QuizSession] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._ttl_minutes = ttl_minutes

    @property
    def ttl(self) -> timedelta | None:
        minutes = self._ttl_minutes if self._ttl_minutes is not None else _session_ttl_minutes()
        if minutes <= 0:
            return None
        return timedelta(minutes=minutes)

    def create(self, user_id: str) -> tuple[str, QuizSession]:
        self.purge_expired()
        now = _utc_now()
        with self._guard:
            thread_id = str(uuid4())
            while thread_id in self._sessions:
                thread_id = str(uuid4())
            session = QuizSession(threadId=thread_id, userId=str(user_id), startedAt=now, updatedAt=now)
            self._sessions[thread_id] = session
            self._locks[thread_id] = threading.Lock()
        LOGGER.info("Created quiz session %s for user %s", thread_id, user_id)
        return thread_id, session

    def get(self, thread_id: str) -> QuizSession | None:
        with self._guard:
            return self._sessions.get(thread_id)

    def lock_for(self, thread_id: str) -> threading.Lock | None:
        with self._guard:
            return self._locks.get(thread_id)

    def touch(self, session: QuizSession) -> None:
        session.updatedAt = _utc_now()

    def purge_expired(self, now: datetime | None = None) -> int:
        ttl = self.ttl
        if ttl is None:
            return 0
        cutoff = (now or _utc_now()) - ttl
        evicted = 0
        with self._guard:
            expired = [thread_id for thread_id, session in self._sessions.items() if session.updatedAt < cutoff]
            for thread_id in expired:
                # A held lock means a request is mid-flight on this session.
                if self._locks[thread_id].locked():
                    continue
                del self._sessions[thread_id]
                del self._locks[thread_id]
                evicted += 1
        if evicted:
            LOGGER.info("Evicted %d idle quiz session(s)", evicted)
        return evicted

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)


quiz_store = QuizSessionStore()
