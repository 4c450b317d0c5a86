"""Turns the model's feedback reply into a FeedbackReport, however messy the reply is."""

import json
import logging
import re
from typing import Any

from .logging import log_event
from .models import FeedbackReport

MAX_STRENGTHS = 4
MAX_AREAS = 3
MAX_TIPS = 3

_REQUIRED_FIELDS = ("overallScore", "strengths", "actionableTips", "roleEvaluation")
_CODE_FENCE = re.compile(r"```(?:json)?\n?")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_OPTIONAL_TEXT_FIELDS = {
    "communicationQuality": "communication_quality",
    "depthOfThinking": "depth_of_thinking",
    "specificExamples": "specific_examples",
    "problemSolvingApproach": "problem_solving_approach",
    "collaboration": "collaboration",
    "selfAwareness": "self_awareness",
}


class FeedbackParseError(ValueError):
    """Raised when a feedback reply is not a usable JSON object."""

    pass


def _clamp_score(value: Any, default: int) -> int:
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        score = default
    return min(10, max(1, score))


def _string_list(value: Any, limit: int | None = None) -> list[str] | None:
    if not isinstance(value, list):
        return None
    items = [str(item) for item in value]
    return items[:limit] if limit is not None else items


def _optional_fields(data: dict[str, Any]) -> dict[str, str]:
    return {
        target: str(data[source])
        for source, target in _OPTIONAL_TEXT_FIELDS.items()
        if data.get(source) is not None
    }


def parse_strict(raw: str) -> FeedbackReport:
    try:
        data = json.loads(raw.strip())
    except json.JSONDecodeError as e:
        raise FeedbackParseError(f"Invalid feedback JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeedbackParseError("Feedback JSON is not an object")

    missing = [field for field in _REQUIRED_FIELDS if not data.get(field)]
    if missing:
        raise FeedbackParseError(f"Missing required feedback fields: {', '.join(missing)}")

    return FeedbackReport(
        overall_score=_clamp_score(data["overallScore"], default=6),
        strengths=_string_list(data["strengths"], MAX_STRENGTHS) or ["Good participation"],
        areas_for_improvement=_string_list(data.get("areasForImprovement"), MAX_AREAS)
        or _string_list(data.get("weaknesses"), MAX_AREAS)
        or ["Could be more specific"],
        actionable_tips=_string_list(data["actionableTips"], MAX_TIPS) or ["Practice more interviews"],
        role_evaluation=str(data["roleEvaluation"]),
        **_optional_fields(data),
    )


def parse_lenient(raw: str) -> FeedbackReport:
    """Strip markdown fences and parse the outermost JSON object, filling gaps with defaults."""
    cleaned = _CODE_FENCE.sub("", raw)
    match = _JSON_OBJECT.search(cleaned)
    if not match:
        raise FeedbackParseError("No JSON object found in feedback reply")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise FeedbackParseError(f"Invalid extracted feedback JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeedbackParseError("Extracted feedback JSON is not an object")

    return FeedbackReport(
        overall_score=_clamp_score(data.get("overallScore") or 6, default=6),
        strengths=_string_list(data.get("strengths")) or ["Engaged in conversation", "Showed interest in role"],
        areas_for_improvement=_string_list(data.get("areasForImprovement"), MAX_AREAS)
        or _string_list(data.get("weaknesses"), MAX_AREAS)
        or ["Could provide more examples"],
        actionable_tips=_string_list(data.get("actionableTips"), MAX_TIPS)
        or ["Practice with real scenarios", "Prepare specific stories"],
        role_evaluation=str(data.get("roleEvaluation") or "Demonstrated potential for the role"),
        **_optional_fields(data),
    )


def fallback_feedback(role: str) -> FeedbackReport:
    return FeedbackReport(
        overall_score=6,
        strengths=[
            "Engaged actively in the interview",
            "Showed interest in learning and growth",
            "Communicated clearly",
        ],
        areas_for_improvement=[
            "Could provide more specific examples",
            "Could elaborate more on technical details",
            "Could ask clarifying questions",
        ],
        actionable_tips=[
            "Prepare concrete examples from past experiences",
            "Research the role and company before interviewing",
            'Practice explaining your thinking process and the "why" behind decisions',
        ],
        role_evaluation=(
            f"You demonstrated genuine interest in the {role} position. To improve your candidacy for future "
            "interviews, focus on providing specific, concrete examples with measurable outcomes, and dive deeper "
            "into your decision-making process to show strategic thinking."
        ),
    )


def parse_feedback(raw: str, role: str) -> FeedbackReport:
    try:
        return parse_strict(raw)
    except FeedbackParseError as e:
        log_event(
            "feedback.strict_parse_failed",
            level=logging.WARNING,
            component="feedback",
            operation="parse",
            error_msg=str(e),
        )

    try:
        report = parse_lenient(raw)
        log_event("feedback.extracted", component="feedback", operation="parse")
        return report
    except FeedbackParseError as e:
        log_event(
            "feedback.fallback_used",
            level=logging.ERROR,
            component="feedback",
            operation="parse",
            error_msg=str(e),
            reply_preview=raw[:200],
        )

    return fallback_feedback(role)
