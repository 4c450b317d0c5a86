from typing import Annotated

from fastapi import APIRouter, Depends

from interview_partner.api.dependencies import get_completion_client, get_question_generator
from interview_partner.api.schemas import (
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    LlmPromptRequest,
    LlmPromptResponse,
)
from interview_partner.core.models import CompletionRequest, ConversationMessage
from interview_partner.core.question_generator import QuestionGenerator
from interview_partner.providers import CompletionClient

router = APIRouter()


@router.post("/llm", response_model=LlmPromptResponse)
async def complete_prompt(
    request: LlmPromptRequest,
    client: Annotated[CompletionClient, Depends(get_completion_client)],
) -> LlmPromptResponse:
    """Send a single user prompt to the model and return its reply."""
    content = await client.complete(
        CompletionRequest(
            messages=[ConversationMessage(role="user", content=request.prompt)],
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )
    )
    return LlmPromptResponse(content=content)


@router.post("/generate-questions", response_model=GenerateQuestionsResponse)
async def generate_questions(
    request: GenerateQuestionsRequest,
    generator: Annotated[QuestionGenerator, Depends(get_question_generator)],
) -> GenerateQuestionsResponse:
    """Draft interview questions for a job posting."""
    questions = await generator.generate_questions(
        request.job_position,
        request.job_description,
        request.interview_duration,
        request.interview_types,
    )
    return GenerateQuestionsResponse(questions=questions)
