import threading
from datetime import datetime, timezone

from app.models.chat import ChatMessage


class ChatMemoryStore:
    """Append-only, per-thread chat history kept for the life of the process."""

    def __init__(self) -> None:
        self._threads: dict[str, list[ChatMessage]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, thread_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(thread_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[thread_id] = lock
                self._threads[thread_id] = []
            return lock

    def append(self, thread_id: str, role: str, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content, timestamp=datetime.now(timezone.utc))
        with self._guard:
            self._threads.setdefault(thread_id, []).append(message)
        return message

    def history(self, thread_id: str) -> list[ChatMessage]:
        with self._guard:
            return list(self._threads.get(thread_id, []))


chat_memory = ChatMemoryStore()
