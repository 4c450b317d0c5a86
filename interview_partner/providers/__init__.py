"""Completion providers for the interview partner."""

from .completion_client import CompletionClient, OpenRouterTransport, RetryState, compute_backoff_ms
from .exceptions import ConfigurationError, ExhaustedRetriesError, ProviderError, TransientRequestError

__all__ = [
    "CompletionClient",
    "OpenRouterTransport",
    "RetryState",
    "compute_backoff_ms",
    "ProviderError",
    "ConfigurationError",
    "TransientRequestError",
    "ExhaustedRetriesError",
]
