from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from interview_partner.core.config import Settings
from interview_partner.core.interview_engine import InterviewEngine
from interview_partner.core.memory_storage import MemorySessionStore
from interview_partner.core.question_generator import QuestionGenerator
from interview_partner.core.session_locks import SessionLocks
from interview_partner.core.storage_interface import SessionStore
from interview_partner.providers import CompletionClient


@lru_cache
def get_settings() -> Settings:
    """Get settings from the environment (cached)."""
    return Settings.from_env()


@lru_cache
def get_session_store() -> SessionStore:
    """Get the process-wide session store (cached)."""
    return MemorySessionStore()


@lru_cache
def get_session_locks() -> SessionLocks:
    """Get the process-wide per-session locks (cached)."""
    return SessionLocks()


@lru_cache
def get_completion_client() -> CompletionClient:
    """Get the completion client (cached)."""
    return CompletionClient.from_settings(get_settings())


def get_interview_engine(
    store: Annotated[SessionStore, Depends(get_session_store)],
    completer: Annotated[CompletionClient, Depends(get_completion_client)],
    locks: Annotated[SessionLocks, Depends(get_session_locks)],
) -> InterviewEngine:
    """Get an interview engine bound to the session store and completion client."""
    return InterviewEngine(store, completer, locks=locks)


def get_question_generator(
    completer: Annotated[CompletionClient, Depends(get_completion_client)],
) -> QuestionGenerator:
    return QuestionGenerator(completer)
