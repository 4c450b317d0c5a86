from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .exceptions import SessionCompletedError, SessionNotFoundError
from .feedback import parse_feedback
from .heuristics import compute_max_turns, decide_action, detect_persona
from .logging import log_event, mask_text, span
from .models import (
    AnswerOutcome,
    CompletionRequest,
    ConversationMessage,
    FeedbackReport,
    InterviewAction,
    InterviewSession,
    InterviewState,
    Role,
    Turn,
)
from .prompts import (
    CLOSING_MESSAGE,
    FOLLOWUP_INSTRUCTION,
    NEXT_QUESTION_INSTRUCTION,
    PROMPTS_DIR,
    add_persona_instructions,
    build_messages,
    first_question_instruction,
    interviewer_system_prompt,
    load_prompt_file,
    render_template,
)
from .session_locks import SessionLocks
from .storage_interface import SessionStore

# (temperature, max_tokens) per kind of model call
FIRST_QUESTION_PARAMS = (0.7, 150)
FOLLOWUP_PARAMS = (0.6, 120)
NEXT_QUESTION_PARAMS = (0.6, 150)
FEEDBACK_PARAMS = (0.3, 800)


class Completer(Protocol):
    async def complete(self, request: CompletionRequest) -> str: ...


def _request(messages: list[ConversationMessage], params: tuple[float, int]) -> CompletionRequest:
    temperature, max_tokens = params
    return CompletionRequest(messages=messages, temperature=temperature, max_tokens=max_tokens)


class InterviewEngine:
    """Runs mock interviews: session bookkeeping, persona heuristics and prompt assembly.

    The engine never holds sessions itself. Every operation loads from the store,
    works on the copy and writes it back only after the model call succeeded, so a
    failed completion leaves the stored session untouched. Answers to one session are
    serialised through ``locks``, which must be shared by all engines over the same store.
    """

    def __init__(
        self,
        store: SessionStore,
        completer: Completer,
        prompts_dir: Path = PROMPTS_DIR,
        locks: SessionLocks | None = None,
    ):
        self.store = store
        self.completer = completer
        self.prompts_dir = prompts_dir
        self.locks = locks if locks is not None else SessionLocks()

    def get_session(self, session_id: str) -> InterviewSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def delete_session(self, session_id: str) -> None:
        if not self.store.delete(session_id):
            raise SessionNotFoundError(session_id)
        log_event("interview.session_deleted", component="engine", operation="delete", session_id=session_id)

    async def start_session(self, role: Role, duration: int) -> tuple[InterviewSession, str]:
        system_prompt = interviewer_system_prompt(role, self.prompts_dir)

        with span("interview.start", component="engine", operation="start", role=role.value, duration=duration):
            first_question = await self.completer.complete(
                _request(build_messages(system_prompt, [], first_question_instruction(role)), FIRST_QUESTION_PARAMS)
            )

        # Persona is detected later from the candidate's answers
        session = InterviewSession(
            role=role,
            duration=duration,
            turn_count=1,
            max_turns=compute_max_turns(duration),
            history=[Turn(speaker="assistant", content=first_question)],
            state=InterviewState.IN_PROGRESS,
        )
        self.store.put(session.id, session)

        log_event(
            "interview.session_started",
            component="engine",
            operation="start",
            session_id=session.id,
            role=role.value,
            max_turns=session.max_turns,
        )
        return session, first_question

    async def submit_answer(self, session_id: str, answer: str) -> AnswerOutcome:
        async with self.locks.hold(session_id):
            return await self._submit_answer(session_id, answer)

    async def _submit_answer(self, session_id: str, answer: str) -> AnswerOutcome:
        session = self.get_session(session_id)
        if session.state == InterviewState.COMPLETED:
            raise SessionCompletedError(session_id)

        session.history.append(Turn(speaker="user", content=answer))

        if session.detected_persona is None:
            session.detected_persona = detect_persona(session.user_answers())
            log_event(
                "interview.persona_detected",
                component="engine",
                operation="submit_answer",
                session_id=session_id,
                persona=session.detected_persona.value,
            )

        action = decide_action(session.turn_count, session.max_turns, answer)
        log_event(
            "interview.answer_received",
            component="engine",
            operation="submit_answer",
            session_id=session_id,
            turn_count=session.turn_count,
            action=action.value,
            answer=mask_text(answer),
        )

        if action == InterviewAction.END_INTERVIEW:
            assistant_response = CLOSING_MESSAGE
            session.state = InterviewState.COMPLETED
        else:
            system_prompt = add_persona_instructions(
                interviewer_system_prompt(session.role, self.prompts_dir), session.detected_persona
            )
            if action == InterviewAction.FOLLOWUP:
                instruction, params = FOLLOWUP_INSTRUCTION, FOLLOWUP_PARAMS
            else:
                instruction, params = NEXT_QUESTION_INSTRUCTION, NEXT_QUESTION_PARAMS

            with span(
                "interview.respond",
                component="engine",
                operation="submit_answer",
                session_id=session_id,
                action=action.value,
            ):
                assistant_response = await self.completer.complete(
                    _request(build_messages(system_prompt, session.history_as_messages(), instruction), params)
                )

        session.history.append(Turn(speaker="assistant", content=assistant_response))
        session.turn_count += 1
        session.updated_at = datetime.now(UTC)
        self.store.put(session.id, session)

        return AnswerOutcome(
            action=action,
            assistant_response=assistant_response,
            turn_count=session.turn_count,
            max_turns=session.max_turns,
            detected_persona=session.detected_persona,
        )

    async def generate_feedback(self, session_id: str) -> FeedbackReport:
        session = self.get_session(session_id)
        persona = session.detected_persona.value if session.detected_persona else None

        prompt = render_template(
            load_prompt_file("feedback_generator.txt", self.prompts_dir),
            {"ROLE": session.role.value, "PERSONA": persona or "unknown"},
        )
        user_message = f"Candidate persona: {persona or 'not detected'}\n\nInterview conversation:\n\n{session.transcript()}"

        with span("interview.feedback", component="engine", operation="generate_feedback", session_id=session_id):
            reply = await self.completer.complete(_request(build_messages(prompt, [], user_message), FEEDBACK_PARAMS))

        return parse_feedback(reply, session.role.value)
