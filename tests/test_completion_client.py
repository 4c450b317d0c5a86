import asyncio

import httpx
import openai
import pytest

from interview_partner.core.config import Settings
from interview_partner.core.models import CompletionRequest, ConversationMessage
from interview_partner.providers import (
    CompletionClient,
    ConfigurationError,
    ExhaustedRetriesError,
    OpenRouterTransport,
    RetryState,
    TransientRequestError,
    compute_backoff_ms,
)


class StatusError(Exception):
    """Transport failure carrying an HTTP status, like the SDK's status errors."""

    def __init__(self, status_code: int, message: str = "request failed"):
        super().__init__(message)
        self.status_code = status_code


class ScriptedTransport:
    """Plays back a script of outcomes, one per attempt."""

    def __init__(self, outcomes: list):
        self.outcomes = list(outcomes)
        self.calls: list[CompletionRequest] = []

    async def __call__(self, request: CompletionRequest) -> str | None:
        self.calls.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays_ms: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays_ms.append(round(seconds * 1000))


def rate_limit_error() -> openai.RateLimitError:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError("Rate limit exceeded", response=response, body=None)


@pytest.fixture
def request_payload() -> CompletionRequest:
    return CompletionRequest(
        messages=[
            ConversationMessage(role="system", content="You are an interviewer."),
            ConversationMessage(role="user", content="Ask me something."),
        ],
        temperature=0.7,
        max_tokens=150,
    )


def make_client(outcomes: list, api_key: str | None = "test-key"):
    transport = ScriptedTransport(outcomes)
    sleep = RecordingSleep()
    return CompletionClient(api_key=api_key, transport=transport, sleep=sleep), transport, sleep


class TestComputeBackoff:
    def test_rate_limit_schedule(self):
        assert [compute_backoff_ms(attempt, 429) for attempt in range(1, 5)] == [6000, 12000, 24000, 48000]

    def test_default_schedule(self):
        assert [compute_backoff_ms(attempt, None) for attempt in range(1, 5)] == [1000, 2000, 4000, 8000]

    def test_other_statuses_use_default_schedule(self):
        assert compute_backoff_ms(2, 500) == 2000
        assert compute_backoff_ms(2, "ECONNRESET") == 2000


class TestCompletionClient:
    def test_first_attempt_success_makes_one_request_without_delay(self, request_payload):
        client, transport, sleep = make_client(["Tell me about yourself."])

        result = asyncio.run(client.complete(request_payload))

        assert result == "Tell me about yourself."
        assert len(transport.calls) == 1
        assert sleep.delays_ms == []

    def test_request_is_passed_through_unchanged(self, request_payload):
        client, transport, _ = make_client(["ok"])

        asyncio.run(client.complete(request_payload))

        sent = transport.calls[0]
        assert [m.role for m in sent.messages] == ["system", "user"]
        assert sent.temperature == 0.7
        assert sent.max_tokens == 150

    def test_four_rate_limits_then_success(self, request_payload):
        client, transport, sleep = make_client([StatusError(429)] * 4 + ["finally"])

        result = asyncio.run(client.complete(request_payload))

        assert result == "finally"
        assert len(transport.calls) == 5
        assert sleep.delays_ms == [6000, 12000, 24000, 48000]

    def test_sdk_rate_limit_error_uses_rate_limit_schedule(self, request_payload):
        client, _, sleep = make_client([rate_limit_error(), "ok"])

        asyncio.run(client.complete(request_payload))

        assert sleep.delays_ms == [6000]

    def test_all_attempts_fail_raises_exhausted_with_last_error(self, request_payload):
        errors = [StatusError(500, f"boom {i}") for i in range(1, 6)]
        client, transport, sleep = make_client(errors)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            asyncio.run(client.complete(request_payload))

        assert exc_info.value.attempts == 5
        assert isinstance(exc_info.value.last_error, TransientRequestError)
        assert str(exc_info.value.last_error) == "boom 5"
        assert exc_info.value.last_error.__cause__ is errors[4]
        assert len(transport.calls) == 5
        # No delay after the final attempt
        assert sleep.delays_ms == [1000, 2000, 4000, 8000]

    def test_missing_credential_makes_no_requests(self, request_payload):
        client, transport, sleep = make_client(["never used"], api_key=None)

        with pytest.raises(ConfigurationError):
            asyncio.run(client.complete(request_payload))

        assert transport.calls == []
        assert sleep.delays_ms == []

    def test_empty_credential_is_treated_as_missing(self, request_payload):
        client, transport, _ = make_client(["never used"], api_key="")

        with pytest.raises(ConfigurationError):
            asyncio.run(client.complete(request_payload))

        assert transport.calls == []

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_content_is_retried_with_default_schedule(self, request_payload, empty):
        client, transport, sleep = make_client([empty, "second time lucky"])

        result = asyncio.run(client.complete(request_payload))

        assert result == "second time lucky"
        assert len(transport.calls) == 2
        assert sleep.delays_ms == [1000]

    def test_empty_content_counts_toward_budget(self, request_payload):
        client, transport, _ = make_client([""] * 5)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            asyncio.run(client.complete(request_payload))

        assert exc_info.value.last_error.status is None
        assert len(transport.calls) == 5

    def test_mixed_failure_classes(self, request_payload):
        client, transport, sleep = make_client([StatusError(503), StatusError(429), "answer"])

        result = asyncio.run(client.complete(request_payload))

        assert result == "answer"
        assert len(transport.calls) == 3
        assert sleep.delays_ms == [1000, 12000]

    def test_network_error_without_status(self, request_payload):
        client, _, sleep = make_client([ConnectionError("connection reset"), "ok"])

        asyncio.run(client.complete(request_payload))

        assert sleep.delays_ms == [1000]

    def test_cancellation_is_not_retried(self, request_payload):
        client, transport, sleep = make_client([asyncio.CancelledError(), "unused"])

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(client.complete(request_payload))

        assert len(transport.calls) == 1
        assert sleep.delays_ms == []

    def test_concurrent_calls_retry_independently(self, request_payload):
        first, first_transport, first_sleep = make_client([StatusError(429), "a"])
        second, second_transport, second_sleep = make_client(["b"])

        async def run_both():
            return await asyncio.gather(first.complete(request_payload), second.complete(request_payload))

        assert asyncio.run(run_both()) == ["a", "b"]
        assert first_sleep.delays_ms == [6000]
        assert second_sleep.delays_ms == []


class TestCompletionRequest:
    def test_rejects_empty_messages(self):
        with pytest.raises(ValueError):
            CompletionRequest(messages=[], temperature=0.5, max_tokens=10)

    @pytest.mark.parametrize("temperature", [-0.1, 2.1])
    def test_rejects_out_of_range_temperature(self, temperature):
        with pytest.raises(ValueError):
            CompletionRequest(
                messages=[ConversationMessage(role="user", content="hi")], temperature=temperature, max_tokens=10
            )

    def test_rejects_non_positive_max_tokens(self):
        with pytest.raises(ValueError):
            CompletionRequest(messages=[ConversationMessage(role="user", content="hi")], max_tokens=0)

    def test_is_immutable(self):
        request = CompletionRequest(messages=[ConversationMessage(role="user", content="hi")])
        with pytest.raises(ValueError):
            request.temperature = 1.0


class TestOpenRouterTransport:
    def test_client_is_not_built_until_first_request(self):
        transport = OpenRouterTransport(Settings(openrouter_api_key=None))
        assert transport._client is None

    def test_from_settings_uses_configured_model(self):
        client = CompletionClient.from_settings(Settings(openrouter_api_key="key", model="vendor/model"))
        assert client.model == "vendor/model"
        assert isinstance(client.transport, OpenRouterTransport)


class TestRetryStateMachine:
    def record_states(self, outcomes: list):
        states: list[tuple[RetryState, int]] = []
        client = CompletionClient(
            api_key="test-key",
            transport=ScriptedTransport(outcomes),
            sleep=RecordingSleep(),
            on_state=lambda state, attempt: states.append((state, attempt)),
        )
        return client, states

    def test_success_after_one_retry(self, request_payload):
        client, states = self.record_states([StatusError(500), "ok"])

        asyncio.run(client.complete(request_payload))

        assert states == [
            (RetryState.ATTEMPTING, 1),
            (RetryState.DELAY, 1),
            (RetryState.ATTEMPTING, 2),
            (RetryState.SUCCESS, 2),
        ]

    def test_final_failure_skips_delay(self, request_payload):
        client, states = self.record_states([StatusError(500)] * 5)

        with pytest.raises(ExhaustedRetriesError):
            asyncio.run(client.complete(request_payload))

        assert states[-2:] == [(RetryState.ATTEMPTING, 5), (RetryState.EXHAUSTED, 5)]
        assert [s for s, _ in states].count(RetryState.DELAY) == 4

    def test_missing_credential_never_leaves_idle(self, request_payload):
        states = []
        client = CompletionClient(api_key=None, transport=ScriptedTransport([]), on_state=lambda s, a: states.append(s))

        with pytest.raises(ConfigurationError):
            asyncio.run(client.complete(request_payload))

        assert states == []
