import copy
import threading
from datetime import UTC, datetime

from .models import InterviewSession
from .storage_interface import SessionStore


class MemorySessionStore(SessionStore):
    """In-memory session store. Sessions are lost when the process exits."""

    def __init__(self):
        self._sessions: dict[str, InterviewSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> InterviewSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            # Copies keep callers from mutating stored state without put()
            return copy.deepcopy(session) if session else None

    def put(self, session_id: str, session: InterviewSession) -> None:
        with self._lock:
            session.updated_at = datetime.now(UTC)
            self._sessions[session_id] = copy.deepcopy(session)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            if session_id in self._sessions:
                del self._sessions[session_id]
                return True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
