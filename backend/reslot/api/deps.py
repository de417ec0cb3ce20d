from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock
import uuid

from reslot.core.config import Settings, get_settings
from reslot.core.exceptions import AppError, ResourceNotFoundError
from reslot.services.ingestion import TimetableSnapshot
from reslot.services.session import RescheduleSession


class SessionStore:
    """In-memory rescheduling sessions.

    Route handlers run on a thread pool while a session itself is not
    thread-safe, so every access goes through ``checkout`` which holds that
    session's lock for the whole operation.
    """

    def __init__(self, max_sessions: int) -> None:
        self._sessions: dict[str, RescheduleSession] = {}
        self._locks: dict[str, Lock] = {}
        self._max_sessions = max(1, max_sessions)
        self._lock = Lock()

    def create(self, snapshot: TimetableSnapshot, settings: Settings) -> str:
        with self._lock:
            if len(self._sessions) >= self._max_sessions:
                raise AppError(
                    "Too many open rescheduling sessions. Close one and try again.",
                    status_code=503,
                    details={"max_sessions": self._max_sessions},
                )
            session_id = uuid.uuid4().hex
            self._sessions[session_id] = RescheduleSession(snapshot, settings)
            self._locks[session_id] = Lock()
        return session_id

    @contextmanager
    def checkout(self, session_id: str) -> Iterator[RescheduleSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            session_lock = self._locks.get(session_id)
        if session is None or session_lock is None:
            raise ResourceNotFoundError("Session", session_id)
        with session_lock:
            yield session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise ResourceNotFoundError("Session", session_id)
            self._locks.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._locks.clear()


_store = SessionStore(get_settings().max_sessions)


def get_store() -> SessionStore:
    return _store


def clear_session_store() -> None:
    _store.clear()
