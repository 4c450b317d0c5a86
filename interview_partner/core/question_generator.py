import json
import logging
import re
from pathlib import Path

from .exceptions import QuestionGenerationError
from .interview_engine import Completer
from .logging import log_event, span
from .models import CompletionRequest, ConversationMessage, GeneratedQuestion
from .prompts import PROMPTS_DIR, load_prompt_file, render_template

QUESTIONS_KEY = "interviewQuestions"
QUESTION_TEMPERATURE = 0.2
QUESTION_MAX_TOKENS = 700


def extract_json_with_key(text: str, key: str = QUESTIONS_KEY) -> str | None:
    """Find the JSON object holding ``key``, falling back to the outermost braces."""
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            candidate, end = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(candidate, dict) and key in candidate:
            return text[match.start() : end]

    loose = re.search(r"\{[\s\S]*\}", text)
    return loose.group(0) if loose else None


class QuestionGenerator:
    """Drafts a list of interview questions for a job posting."""

    def __init__(self, completer: Completer, prompts_dir: Path = PROMPTS_DIR):
        self.completer = completer
        self.prompts_dir = prompts_dir

    async def generate_questions(
        self,
        job_position: str,
        job_description: str,
        interview_duration: str,
        interview_types: list[str],
    ) -> list[GeneratedQuestion]:
        prompt = render_template(
            load_prompt_file("question_generator.txt", self.prompts_dir),
            {
                "jobTitle": job_position,
                "jobDescription": job_description,
                "duration": interview_duration,
                "type": interview_types[0],
            },
        )
        request = CompletionRequest(
            messages=[ConversationMessage(role="user", content=prompt)],
            temperature=QUESTION_TEMPERATURE,
            max_tokens=QUESTION_MAX_TOKENS,
        )

        with span(
            "questions.generate",
            component="question_generator",
            operation="generate_questions",
            job_position=job_position,
            interview_type=interview_types[0],
        ):
            raw = await self.completer.complete(request)

        return self._parse(raw)

    def _parse(self, raw: str) -> list[GeneratedQuestion]:
        cleaned = raw.replace("```", "").strip()
        json_str = extract_json_with_key(cleaned)
        if json_str is None:
            log_event(
                "questions.extract_failed",
                level=logging.ERROR,
                component="question_generator",
                operation="parse",
                reply_preview=cleaned[:200],
            )
            raise QuestionGenerationError("Failed to extract JSON from model response")

        try:
            parsed = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise QuestionGenerationError(f"Failed to parse JSON from model: {e}") from e

        questions = parsed.get(QUESTIONS_KEY) if isinstance(parsed, dict) else None
        if not isinstance(questions, list):
            raise QuestionGenerationError(f"Model response did not contain {QUESTIONS_KEY} array")

        try:
            return [GeneratedQuestion(**item) for item in questions]
        except (TypeError, ValueError) as e:
            raise QuestionGenerationError(f"Malformed question entry: {e}") from e
