class ProviderError(Exception):
    """Base exception for completion provider operations."""

    pass


class ConfigurationError(ProviderError):
    """Raised when the provider credential is not configured."""

    pass


class TransientRequestError(ProviderError):
    """Raised when a single attempt fails: network/HTTP error or empty content.

    ``status`` holds the HTTP status (or provider error code) when one is known.
    """

    def __init__(self, message: str, status: int | str | None = None):
        super().__init__(message)
        self.status = status


class ExhaustedRetriesError(ProviderError):
    """Raised once the attempt budget is spent. Wraps the most recent attempt error."""

    def __init__(self, attempts: int, last_error: TransientRequestError):
        super().__init__(f"Failed to generate response after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error
