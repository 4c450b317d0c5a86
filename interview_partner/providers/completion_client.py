import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from openai import AsyncOpenAI

from interview_partner.core.config import Settings
from interview_partner.core.logging import log_event, span
from interview_partner.core.models import CompletionRequest

from .exceptions import ConfigurationError, ExhaustedRetriesError, TransientRequestError

MAX_ATTEMPTS = 5
RATE_LIMIT_STATUS = 429
RATE_LIMIT_BASE_DELAY_MS = 3000
DEFAULT_BASE_DELAY_MS = 1000

# One outbound request: returns the generated text (possibly empty) or raises.
Transport = Callable[[CompletionRequest], Awaitable[str | None]]
Sleep = Callable[[float], Awaitable[Any]]
StateListener = Callable[["RetryState", int], None]


class RetryState(Enum):
    """States of a single completion call."""

    IDLE = "idle"
    ATTEMPTING = "attempting"
    DELAY = "delay"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


VALID_TRANSITIONS: dict[RetryState, set[RetryState]] = {
    RetryState.IDLE: {RetryState.ATTEMPTING},
    RetryState.ATTEMPTING: {RetryState.SUCCESS, RetryState.DELAY, RetryState.EXHAUSTED},
    RetryState.DELAY: {RetryState.ATTEMPTING},
    RetryState.SUCCESS: set(),
    RetryState.EXHAUSTED: set(),
}


def compute_backoff_ms(attempt: int, status: int | str | None) -> int:
    """Delay before the retry that follows failed ``attempt`` (1-indexed)."""
    if status == RATE_LIMIT_STATUS:
        return (2**attempt) * RATE_LIMIT_BASE_DELAY_MS
    return (2 ** (attempt - 1)) * DEFAULT_BASE_DELAY_MS


def _status_of(error: Exception) -> int | str | None:
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "code", None)
    return status


class OpenRouterTransport:
    """Issues one chat-completion request against an OpenAI-compatible endpoint."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.model = settings.model
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use: AsyncOpenAI refuses to construct without a key
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.settings.openrouter_base_url,
                api_key=self.settings.openrouter_api_key,
                default_headers={
                    "HTTP-Referer": self.settings.app_url,
                    "X-Title": self.settings.app_title,
                },
                # Retries are owned by CompletionClient
                max_retries=0,
            )
        return self._client

    async def __call__(self, request: CompletionRequest) -> str | None:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[message.model_dump() for message in request.messages],
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


class CompletionClient:
    """Obtains generated text from the remote model, retrying transient failures.

    Each call walks ``IDLE -> ATTEMPTING(n) -> SUCCESS | DELAY(n) -> ATTEMPTING(n+1) |
    EXHAUSTED``. A failed final attempt goes straight to ``EXHAUSTED`` without a delay.
    Attempts run strictly one after another; a delay awaits ``sleep`` and suspends
    only this call. Cancelling the awaiting task aborts the call at the current
    request or delay, since ``asyncio.CancelledError`` is never treated as a failure.
    """

    def __init__(
        self,
        api_key: str | None,
        transport: Transport,
        sleep: Sleep = asyncio.sleep,
        max_attempts: int = MAX_ATTEMPTS,
        model: str = "",
        on_state: StateListener | None = None,
    ):
        self.api_key = api_key
        self.transport = transport
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.model = model
        self.on_state = on_state

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(
            api_key=settings.openrouter_api_key,
            transport=OpenRouterTransport(settings),
            model=settings.model,
        )

    async def complete(self, request: CompletionRequest) -> str:
        if not self.api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is not configured. Please add it to .env")

        state = RetryState.IDLE
        attempt = 1

        def transition(new_state: RetryState) -> RetryState:
            if new_state not in VALID_TRANSITIONS[state]:
                raise RuntimeError(f"Invalid retry transition {state.value} -> {new_state.value}")
            if self.on_state:
                self.on_state(new_state, attempt)
            return new_state

        state = transition(RetryState.ATTEMPTING)
        while True:
            try:
                content = await self._attempt(request, attempt)
            except TransientRequestError as e:
                self._log_failure(attempt, e)
                if attempt >= self.max_attempts:
                    transition(RetryState.EXHAUSTED)
                    log_event(
                        "llm.retries_exhausted",
                        level=logging.ERROR,
                        component="provider",
                        operation="complete",
                        attempts=attempt,
                        error_msg=str(e),
                    )
                    raise ExhaustedRetriesError(attempt, e)

                state = transition(RetryState.DELAY)
                delay_ms = compute_backoff_ms(attempt, e.status)
                log_event(
                    "llm.retry_scheduled",
                    component="provider",
                    operation="complete",
                    attempt=attempt,
                    delay_ms=delay_ms,
                )
                await self.sleep(delay_ms / 1000)
                attempt += 1
                state = transition(RetryState.ATTEMPTING)
            else:
                transition(RetryState.SUCCESS)
                return content

    async def _attempt(self, request: CompletionRequest, attempt: int) -> str:
        with span(
            "llm.complete",
            component="provider",
            operation="complete",
            model=self.model,
            attempt=attempt,
            message_count=len(request.messages),
        ):
            try:
                content = await self.transport(request)
            except TransientRequestError:
                raise
            except Exception as e:
                raise TransientRequestError(str(e) or type(e).__name__, status=_status_of(e)) from e

            if not content:
                raise TransientRequestError("No content in completion response")
            return content

    def _log_failure(self, attempt: int, error: TransientRequestError) -> None:
        log_event(
            "llm.attempt_failed",
            level=logging.WARNING,
            component="provider",
            operation="complete",
            attempt=attempt,
            max_attempts=self.max_attempts,
            status=error.status,
            error_msg=str(error),
        )
