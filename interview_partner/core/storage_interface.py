from abc import ABC, abstractmethod

from .models import InterviewSession


class SessionStore(ABC):
    """Abstract interface for interview session storage implementations."""

    @abstractmethod
    def get(self, session_id: str) -> InterviewSession | None:
        """Load a session. Returns None if it does not exist."""
        pass

    @abstractmethod
    def put(self, session_id: str, session: InterviewSession) -> None:
        """Insert or replace a session."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if deleted, False if not found."""
        pass
