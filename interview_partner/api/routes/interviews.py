from typing import Annotated

from fastapi import APIRouter, Depends, Query

from interview_partner.api.dependencies import get_interview_engine
from interview_partner.api.schemas import (
    FeedbackReportResponse,
    GetFeedbackResponse,
    SessionDetailResponse,
    StartInterviewRequest,
    StartInterviewResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)
from interview_partner.core.interview_engine import InterviewEngine

router = APIRouter()


@router.post("/start-interview", response_model=StartInterviewResponse)
async def start_interview(
    request: StartInterviewRequest,
    engine: Annotated[InterviewEngine, Depends(get_interview_engine)],
) -> StartInterviewResponse:
    """Start a mock interview and return the opening question."""
    session, first_question = await engine.start_session(request.role, request.duration)
    return StartInterviewResponse(session_id=session.id, first_question=first_question, max_turns=session.max_turns)


@router.post("/submit-answer", response_model=SubmitAnswerResponse)
async def submit_answer(
    request: SubmitAnswerRequest,
    engine: Annotated[InterviewEngine, Depends(get_interview_engine)],
) -> SubmitAnswerResponse:
    """Record the candidate's answer and return the interviewer's next move."""
    outcome = await engine.submit_answer(request.session_id, request.answer)
    return SubmitAnswerResponse(**outcome.model_dump())


@router.get("/get-feedback", response_model=GetFeedbackResponse)
async def get_feedback(
    session_id: Annotated[str, Query(alias="sessionId", min_length=1)],
    engine: Annotated[InterviewEngine, Depends(get_interview_engine)],
) -> GetFeedbackResponse:
    """Generate the feedback report for an interview."""
    report = await engine.generate_feedback(session_id)
    return GetFeedbackResponse(feedback=FeedbackReportResponse.from_report(report))


@router.get("/sessions/{session_id}", response_model=SessionDetailResponse)
async def get_session(
    session_id: str,
    engine: Annotated[InterviewEngine, Depends(get_interview_engine)],
) -> SessionDetailResponse:
    return SessionDetailResponse.from_session(engine.get_session(session_id))


@router.delete("/sessions/{session_id}")
async def delete_session(
    session_id: str,
    engine: Annotated[InterviewEngine, Depends(get_interview_engine)],
) -> dict[str, str]:
    engine.delete_session(session_id)
    return {"message": f"Session {session_id} deleted successfully"}
