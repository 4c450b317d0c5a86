import asyncio
from datetime import UTC, datetime

import typer
import uvicorn

from interview_partner.core.config import Settings
from interview_partner.core.interview_engine import InterviewEngine
from interview_partner.core.logging import init_logging, log_event, set_run_id, set_trace_id
from interview_partner.core.memory_storage import MemorySessionStore
from interview_partner.core.models import FeedbackReport, InterviewAction, Role
from interview_partner.providers import CompletionClient, ConfigurationError, ExhaustedRetriesError

app = typer.Typer(help="Interview Partner - practise mock interviews with an AI interviewer.")


def _init_logging_from_cli(
    log_level: str | None = None,
    log_file: str | None = None,
    log_format: str = "text",
    log_mask: bool = False,
) -> None:
    # Logs go to stderr so they don't interleave with the interview transcript
    init_logging(level=log_level, fmt=log_format, file_path=log_file, mask=log_mask, use_stderr=True)
    _rid = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")[-12:]
    set_run_id(_rid)
    set_trace_id(_rid)
    log_event(
        "cli.start",
        component="cli",
        operation="start",
        log_level=log_level or "INFO",
        log_file=log_file or "stderr",
        log_format=log_format,
        log_mask=log_mask,
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host to bind the server to"),
    port: int = typer.Option(8080, help="Port to bind the server to"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
    log_level: str = typer.Option("info", help="Log level (debug, info, warning, ...)"),
    log_format: str = typer.Option("json", help="Log format: json|text"),
):
    """
    Run the HTTP API.
    """
    _init_logging_from_cli(log_level, None, log_format)
    typer.echo(f"Starting Interview Partner API on {host}:{port}")
    typer.echo(f"API Documentation: http://{host}:{port}/docs")
    uvicorn.run("interview_partner.api.main:app", host=host, port=port, reload=reload, log_level=log_level.lower())


def _print_feedback(report: FeedbackReport) -> None:
    typer.echo("")
    typer.echo(f"Overall score: {report.overall_score}/10")
    typer.echo("")
    for title, items in (
        ("Strengths", report.strengths),
        ("Areas for improvement", report.areas_for_improvement),
        ("Actionable tips", report.actionable_tips),
    ):
        typer.echo(f"{title}:")
        for item in items:
            typer.echo(f"  - {item}")
    typer.echo("")
    typer.echo(report.role_evaluation)


async def _run_practice(engine: InterviewEngine, role: Role, duration: int) -> None:
    session, question = await engine.start_session(role, duration)
    typer.echo(f"\nInterviewer: {question}\n")

    while True:
        answer = typer.prompt("You").strip()
        if not answer:
            continue
        outcome = await engine.submit_answer(session.id, answer)
        typer.echo(f"\nInterviewer: {outcome.assistant_response}\n")
        if outcome.action == InterviewAction.END_INTERVIEW:
            break

    _print_feedback(await engine.generate_feedback(session.id))


@app.command()
def practice(
    role: Role = typer.Option(Role.SOFTWARE_ENGINEER, help="Role to interview for"),
    duration: int = typer.Option(20, min=1, help="Interview length in minutes"),
    log_level: str | None = typer.Option("WARNING", help="Log level (DEBUG, INFO, ...)"),
    log_file: str | None = typer.Option(None, help="Log file path (default stderr)"),
    log_format: str = typer.Option("text", help="Log format: json|text"),
    log_mask: bool = typer.Option(True, help="Mask candidate answers in logs"),
):
    """
    Run a mock interview in the terminal and print the feedback report.
    """
    _init_logging_from_cli(log_level, log_file, log_format, log_mask)
    engine = InterviewEngine(MemorySessionStore(), CompletionClient.from_settings(Settings.from_env()))
    try:
        asyncio.run(_run_practice(engine, role, duration))
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(2)
    except ExhaustedRetriesError as e:
        typer.echo(f"The interview service is busy, please try again later ({e.last_error})", err=True)
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
