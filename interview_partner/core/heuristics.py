"""Word-count heuristics that steer the interview without asking the model."""

import math

from .models import InterviewAction, Persona

SHALLOW_ANSWER_WORDS = 30
EFFICIENT_AVG_WORDS = 30
CHATTY_AVG_WORDS = 150
MIN_TURNS = 4
MAX_TURNS = 6
MINUTES_PER_TURN = 5
UNCERTAIN_PHRASES = ("don't know", "not sure")


def count_words(text: str) -> int:
    return len(text.split())


def is_shallow_answer(answer: str) -> bool:
    return count_words(answer) < SHALLOW_ANSWER_WORDS or len(answer.split(".")) == 1


def decide_action(turn_count: int, max_turns: int, answer: str) -> InterviewAction:
    if turn_count >= max_turns:
        return InterviewAction.END_INTERVIEW
    if is_shallow_answer(answer):
        return InterviewAction.FOLLOWUP
    return InterviewAction.NEXT_QUESTION


def compute_max_turns(duration: int) -> int:
    """4-6 turns depending on the interview length in minutes."""
    return min(max(math.ceil(duration / MINUTES_PER_TURN), MIN_TURNS), MAX_TURNS)


def detect_persona(answers: list[str]) -> Persona:
    if not answers:
        return Persona.EDGE_CASE

    avg_length = sum(count_words(answer) for answer in answers) / len(answers)

    if avg_length < EFFICIENT_AVG_WORDS:
        return Persona.EFFICIENT
    if avg_length > CHATTY_AVG_WORDS:
        return Persona.CHATTY
    if any(phrase in answer for answer in answers for phrase in UNCERTAIN_PHRASES):
        return Persona.CONFUSED

    # TODO: revisit whether mid-length answers should map to EDGE_CASE instead
    return Persona.EFFICIENT
