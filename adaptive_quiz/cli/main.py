"""
Adaptive Quiz CLI

Usage:
    adaptive-quiz serve                      # Run the HTTP API
    adaptive-quiz seed questions.json        # Load a question bank into the database
    adaptive-quiz play                       # Take an adaptive quiz in the terminal
    adaptive-quiz play --bank questions.json # ...against a JSON bank instead of the database
    adaptive-quiz results --user alice       # Show finished quizzes
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import IntPrompt
from rich.table import Table

from adaptive_quiz.adaptive.engine import AdaptiveQuizEngine
from adaptive_quiz.adaptive.scoring import difficulty_breakdown
from adaptive_quiz.config import get_settings
from adaptive_quiz.core.errors import QuizEngineError
from adaptive_quiz.core.models import PresentedQuestion, QuizResult
from adaptive_quiz.db.database import init_db
from adaptive_quiz.logging_config import configure_logging
from adaptive_quiz.repositories.memory import (
    InMemoryQuestionRepository,
    InMemoryResultStore,
    load_questions_file,
)
from adaptive_quiz.repositories.sql import SqlQuestionRepository, SqlResultStore

app = typer.Typer(
    name="adaptive-quiz",
    help="Adaptive Quiz - difficulty-adaptive multiple-choice quizzes",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

SAMPLE_BANK = Path(__file__).resolve().parent.parent / "data" / "sample_questions.json"

DIFFICULTY_STYLE = {"easy": "green", "medium": "yellow", "hard": "red"}


# =============================================================================
# Server & Data Commands
# =============================================================================


@app.command()
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Bind port")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on code changes")] = False,
) -> None:
    """Run the HTTP API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "adaptive_quiz.api.main:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def seed(
    bank: Annotated[Path, typer.Argument(help="JSON question bank")] = SAMPLE_BANK,
) -> None:
    """Load a JSON question bank into the configured database."""
    try:
        questions = load_questions_file(bank)
    except (FileNotFoundError, ValueError, KeyError) as exc:
        console.print(f"[red]Cannot load {bank}: {exc}[/]")
        raise typer.Exit(code=1)

    init_db()
    count = SqlQuestionRepository().add_many(questions)
    console.print(f"[green]Seeded {count} questions from {bank}[/]")


@app.command()
def results(
    user: Annotated[str, typer.Option("--user", "-u", help="User id")] = "local",
    limit: Annotated[int, typer.Option("--limit", "-n", help="How many results")] = 10,
    subject: Annotated[str | None, typer.Option("--subject", "-s", help="Subject filter")] = None,
) -> None:
    """Show a user's finished quizzes from the database."""
    init_db()
    rows = SqlResultStore().list_for_user(user, limit, subject=subject)

    if not rows:
        console.print(f"[dim]No results for {user}[/]")
        return

    table = Table(title=f"Quiz results - {user}")
    table.add_column("Finished")
    table.add_column("Subject")
    table.add_column("Score", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Final level")
    table.add_column("Passed")

    for result in rows:
        final = result.adaptive_data.final_difficulty.value
        table.add_row(
            result.end_time.strftime("%Y-%m-%d %H:%M"),
            result.subject,
            str(result.score),
            f"{result.correct_answers}/{result.total_questions}",
            f"[{DIFFICULTY_STYLE[final]}]{final}[/]",
            "[green]yes[/]" if result.passed else "[red]no[/]",
        )

    console.print(table)


# =============================================================================
# Interactive Quiz
# =============================================================================


@app.command()
def play(
    bank: Annotated[
        Path | None, typer.Option("--bank", "-b", help="JSON question bank (default: database)")
    ] = None,
    subject: Annotated[str | None, typer.Option("--subject", "-s", help="Subject filter")] = None,
    count: Annotated[int | None, typer.Option("--count", "-n", help="Number of questions")] = None,
    user: Annotated[str, typer.Option("--user", "-u", help="User id")] = "local",
) -> None:
    """Take an adaptive quiz in the terminal."""
    if bank is not None:
        try:
            questions = InMemoryQuestionRepository.from_file(bank)
        except (FileNotFoundError, ValueError, KeyError) as exc:
            console.print(f"[red]Cannot load {bank}: {exc}[/]")
            raise typer.Exit(code=1)
        engine = AdaptiveQuizEngine(questions=questions, results=InMemoryResultStore())
    else:
        init_db()
        engine = AdaptiveQuizEngine(questions=SqlQuestionRepository(), results=SqlResultStore())

    try:
        _run_quiz(engine, user, subject, count)
    except QuizEngineError as exc:
        console.print(f"[red]{exc.kind}: {exc.message}[/]")
        raise typer.Exit(code=1)
    finally:
        engine.close()


def _run_quiz(engine: AdaptiveQuizEngine, user: str, subject: str | None, count: int | None) -> None:
    started = engine.start_session(user_id=user, subject=subject, question_count=count)
    session_id = started.session_id
    question = started.question
    number = started.current_question_number
    total = started.total_questions

    while True:
        _show_question(question, number, total)
        asked_at = time.monotonic()
        choice = IntPrompt.ask("Your answer", choices=["1", "2", "3", "4"])
        elapsed = int(time.monotonic() - asked_at)

        response = engine.submit_answer(
            session_id=session_id,
            user_id=user,
            question_id=question.id,
            selected_index=choice - 1,
            time_spent_seconds=elapsed,
        )

        last = response.last_answer
        if last.is_correct:
            console.print("[bold green]Correct![/]")
        else:
            console.print(f"[bold red]Wrong.[/] The answer was {last.correct_index + 1}.")
        if last.explanation:
            console.print(f"[dim]{last.explanation}[/]")

        if response.completed:
            if response.message:
                console.print(f"[yellow]{response.message}[/]")
            _show_result(response.result)
            return

        question = response.next_question
        number = response.current_question_number


def _show_question(question: PresentedQuestion, number: int, total: int) -> None:
    style = DIFFICULTY_STYLE[question.difficulty.value]
    options = "\n".join(f"  {i}. {text}" for i, text in enumerate(question.options, start=1))
    console.print(
        Panel(
            f"[bold]{question.text}[/]\n\n{options}",
            title=f"Question {number}/{total} - {question.subject}",
            subtitle=f"[{style}]{question.difficulty.value}[/]",
            border_style=style,
        )
    )


def _show_result(result: QuizResult | None) -> None:
    if result is None:
        return

    verdict = "[bold green]PASSED[/]" if result.passed else "[bold red]NOT PASSED[/]"
    lines = [
        f"Score: [bold]{result.score}[/] {verdict}",
        f"Correct: {result.correct_answers}/{result.total_questions}",
        f"Time: {result.time_spent_seconds}s",
        f"Difficulty: {result.adaptive_data.starting_difficulty.value} -> "
        f"{result.adaptive_data.final_difficulty.value}",
    ]
    for level, counts in difficulty_breakdown(result.answers).items():
        if counts["total"]:
            lines.append(f"  [{DIFFICULTY_STYLE[level]}]{level}[/]: {counts['correct']}/{counts['total']}")
    for title, entries in (
        ("Strengths", result.feedback.strengths),
        ("Weaknesses", result.feedback.weaknesses),
        ("Recommendations", result.feedback.recommendations),
    ):
        if entries:
            lines.append(f"\n[bold]{title}[/]")
            lines.extend(f"  - {entry}" for entry in entries)

    console.print(Panel("\n".join(lines), title="Quiz complete", border_style="cyan"))


# =============================================================================
# Entry Point
# =============================================================================


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """
    Adaptive Quiz - questions get harder as you get them right.

    \b
    Quick Start:
      adaptive-quiz seed                 # Load the bundled sample bank
      adaptive-quiz play                 # Take a quiz
      adaptive-quiz serve                # Run the HTTP API
    """
    configure_logging(level="DEBUG" if verbose else "WARNING")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
