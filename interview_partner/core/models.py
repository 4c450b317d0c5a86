from datetime import UTC, datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    SOFTWARE_ENGINEER = "software_engineer"
    PRODUCT_MANAGER = "product_manager"
    SALES = "sales"


class Persona(str, Enum):
    EFFICIENT = "efficient"
    CHATTY = "chatty"
    CONFUSED = "confused"
    EDGE_CASE = "edge-case"


class InterviewAction(str, Enum):
    FOLLOWUP = "followup"
    NEXT_QUESTION = "next-question"
    END_INTERVIEW = "end-interview"


class InterviewState(str, Enum):
    STARTED = "started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class ConversationMessage(BaseModel):
    """One chat-completion message. Order within a request is chronological."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    messages: tuple[ConversationMessage, ...] = Field(..., min_length=1)
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1000, gt=0)


class Turn(BaseModel):
    speaker: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class InterviewSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Role
    detected_persona: Persona | None = None
    duration: int
    turn_count: int = 1
    max_turns: int
    history: list[Turn] = []
    state: InterviewState = InterviewState.STARTED
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def user_answers(self) -> list[str]:
        return [turn.content for turn in self.history if turn.speaker == "user"]

    def history_as_messages(self) -> list[ConversationMessage]:
        return [ConversationMessage(role=turn.speaker, content=turn.content) for turn in self.history]

    def transcript(self) -> str:
        return "\n\n".join(
            f"{'Candidate' if turn.speaker == 'user' else 'Interviewer'}: {turn.content}" for turn in self.history
        )


class FeedbackReport(BaseModel):
    overall_score: int = Field(..., ge=1, le=10)
    strengths: list[str]
    areas_for_improvement: list[str] = []
    actionable_tips: list[str]
    role_evaluation: str
    communication_quality: str | None = None
    depth_of_thinking: str | None = None
    specific_examples: str | None = None
    problem_solving_approach: str | None = None
    collaboration: str | None = None
    self_awareness: str | None = None


class AnswerOutcome(BaseModel):
    acknowledged: bool = True
    action: InterviewAction
    assistant_response: str
    turn_count: int
    max_turns: int
    detected_persona: Persona | None = None


class GeneratedQuestion(BaseModel):
    question: str
    type: str
