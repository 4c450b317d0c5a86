class InterviewError(Exception):
    """Base exception for interview operations."""

    pass


class SessionNotFoundError(InterviewError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionCompletedError(InterviewError):
    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is already completed")
        self.session_id = session_id


class QuestionGenerationError(InterviewError):
    """Raised when the model's reply does not contain a usable question list."""

    pass
