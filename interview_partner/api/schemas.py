from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from interview_partner.core.models import (
    FeedbackReport,
    GeneratedQuestion,
    InterviewAction,
    InterviewSession,
    InterviewState,
    Persona,
    Role,
    Turn,
)


class CamelModel(BaseModel):
    """Wire models use camelCase names; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartInterviewRequest(CamelModel):
    role: Role
    duration: int = Field(..., gt=0, le=120, description="Interview length in minutes")


class StartInterviewResponse(CamelModel):
    session_id: str
    first_question: str
    max_turns: int


class SubmitAnswerRequest(CamelModel):
    session_id: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1, max_length=5000)

    @field_validator("answer")
    @classmethod
    def validate_answer(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Answer cannot be empty or only whitespace")
        return v.strip()


class SubmitAnswerResponse(CamelModel):
    acknowledged: bool
    action: InterviewAction
    assistant_response: str
    turn_count: int
    max_turns: int
    detected_persona: Persona | None = None


class FeedbackReportResponse(CamelModel):
    overall_score: int
    strengths: list[str]
    areas_for_improvement: list[str]
    actionable_tips: list[str]
    role_evaluation: str
    communication_quality: str | None = None
    depth_of_thinking: str | None = None
    specific_examples: str | None = None
    problem_solving_approach: str | None = None
    collaboration: str | None = None
    self_awareness: str | None = None

    @classmethod
    def from_report(cls, report: FeedbackReport) -> "FeedbackReportResponse":
        return cls(**report.model_dump())


class GetFeedbackResponse(CamelModel):
    feedback: FeedbackReportResponse


class SessionDetailResponse(CamelModel):
    id: str
    role: Role
    detected_persona: Persona | None
    duration: int
    turn_count: int
    max_turns: int
    history: list[Turn]
    state: InterviewState
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: InterviewSession) -> "SessionDetailResponse":
        return cls(**session.model_dump())


class GenerateQuestionsRequest(BaseModel):
    job_position: str = Field(..., min_length=1, max_length=200)
    job_description: str = Field(..., min_length=1, max_length=10000)
    interview_duration: str = Field(..., min_length=1)
    interview_types: list[str] = Field(..., min_length=1)


class GenerateQuestionsResponse(BaseModel):
    questions: list[GeneratedQuestion]


class LlmPromptRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    temperature: float = Field(0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(512, gt=0)


class LlmPromptResponse(BaseModel):
    content: str
