import logging
import re
from pathlib import Path

from .logging import log_event
from .models import ConversationMessage, Persona, Role

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"

_PLACEHOLDER = re.compile(r"{{\s*([a-zA-Z0-9_]+)\s*}}")

PERSONA_INSTRUCTIONS: dict[Persona, str] = {
    Persona.EFFICIENT: (
        "[COMMUNICATION STYLE: The user is efficient and wants quick, direct answers. "
        "Keep questions concise and focused. Avoid lengthy explanations.]"
    ),
    Persona.CHATTY: (
        "[COMMUNICATION STYLE: The user tends to be verbose and detailed. Be patient with longer answers. "
        "Gently redirect if they go off-topic, but acknowledge their enthusiasm.]"
    ),
    Persona.CONFUSED: (
        "[COMMUNICATION STYLE: The user may seem uncertain or confused. Be supportive and encouraging. "
        "Offer to rephrase questions or break them down. Provide clarification when needed.]"
    ),
    Persona.EDGE_CASE: (
        "[COMMUNICATION STYLE: The user may provide off-topic or unexpected answers. "
        "Stay professional and redirect tactfully. If they go beyond your scope, "
        "acknowledge it and refocus on the role.]"
    ),
}

FIRST_QUESTION_INSTRUCTION = """You're starting a mock interview for a {role} position. \
Your goal is to start with an engaging, open-ended question that gets the candidate talking \
and helps you understand their experience and thinking.

Based on the role guidelines above, ask one specific opening question (NOT generic). \
Make it inviting and show genuine interest. Keep it to 2-3 sentences max."""

FOLLOWUP_INSTRUCTION = (
    "Respond naturally to what they just said. Ask a probing follow-up question to help them "
    "elaborate or provide more specific details. Be conversational and genuine in your reaction."
)

NEXT_QUESTION_INSTRUCTION = (
    "Acknowledge what they said briefly, then ask the next interview question naturally. "
    "Make sure it's a different topic area from what you've already covered. Be conversational."
)

CLOSING_MESSAGE = "Thank you for the interview. Let me analyze your responses and prepare your feedback."


def load_prompt_file(file_path: str, prompts_dir: Path = PROMPTS_DIR) -> str:
    """Read a prompt template from the prompts directory. Missing files yield an empty prompt."""
    full_path = prompts_dir / file_path
    try:
        return full_path.read_text(encoding="utf-8")
    except OSError as e:
        log_event(
            "prompts.load_failed",
            level=logging.ERROR,
            component="prompts",
            operation="load_prompt_file",
            path=file_path,
            error_type=type(e).__name__,
            error_msg=str(e),
        )
        return ""


def render_template(template: str, variables: dict[str, str | int]) -> str:
    """Replace ``{{ key }}`` placeholders. Unknown keys render as empty strings."""

    def _substitute(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_substitute, template)


def build_messages(
    system_prompt: str, history: list[ConversationMessage], user_message: str
) -> list[ConversationMessage]:
    return [
        ConversationMessage(role="system", content=system_prompt),
        *history,
        ConversationMessage(role="user", content=user_message),
    ]


def interviewer_system_prompt(role: Role, prompts_dir: Path = PROMPTS_DIR) -> str:
    system_prompt = load_prompt_file("system_interviewer.txt", prompts_dir)
    role_template = load_prompt_file(f"role_templates/{role.value}.txt", prompts_dir)
    return f"{system_prompt}\n\n{role_template}"


def add_persona_instructions(base_prompt: str, persona: Persona | None) -> str:
    if persona is None:
        return base_prompt
    return f"{base_prompt}\n\n{PERSONA_INSTRUCTIONS[persona]}"


def first_question_instruction(role: Role) -> str:
    return FIRST_QUESTION_INSTRUCTION.format(role=role.value)
