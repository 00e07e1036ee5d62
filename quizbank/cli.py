"""
CLI Interface
=============
Command-line interface for the quiz bank tools.

Usage:
    python -m quizbank extract <file.pdf|file.txt> [options]
    python -m quizbank validate <bank.json>
    python -m quizbank quiz <bank.json> [options]
    python -m quizbank grade --correct A,C --proposed C,A
    python -m quizbank serve [options]
"""

from __future__ import annotations

import json
import os
import re
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .engine import QuizBankConfig, QuizBankEngine
from .errors import QuizBankError, QuizSessionError
from .models import Question
from .session import QuizSession, QuizSettings
from .validator import validate_answer

console = Console()

_SELECTION_SPLIT = re.compile(r"[,\s]+")


def parse_selection(raw: str) -> list[str]:
    """Labels typed by a user: "A,C", "A C" or "AC"."""
    tokens = [t for t in _SELECTION_SPLIT.split(raw.strip().upper()) if t]
    if len(tokens) == 1 and len(tokens[0]) > 1 and tokens[0].isalpha():
        return list(tokens[0])
    return tokens


@click.group()
@click.version_option(version=__version__, prog_name="quizbank")
def cli():
    """Quiz Bank: turn exam PDFs into practice question banks."""
    pass


@cli.command()
@click.argument("source_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    default="output",
    help="Output directory for the question bank",
)
@click.option(
    "--name", "-n",
    default="",
    help="Bank name (defaults to filename)",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Fail if any structural diagnostics are found",
)
@click.option(
    "--text-service",
    default=None,
    envvar="QUIZBANK_TEXT_SERVICE_URL",
    help="PDF-to-text service URL (default: local PyMuPDF)",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--log-file",
    default=None,
    help="Path to log file",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def extract(
    source_path: str,
    output: str,
    name: str,
    strict: bool,
    text_service: str,
    log_level: str,
    log_file: str,
    json_output: bool,
):
    """Extract questions from a PDF or text file into a JSON bank."""

    if json_output:
        # Suppress console output for JSON mode
        log_level = "ERROR"

    config = QuizBankConfig(
        output_dir=output,
        bank_name=name,
        strict=strict,
        text_service_url=text_service,
        log_level=log_level,
        log_file=log_file,
    )

    try:
        engine = QuizBankEngine(config)

        if json_output:
            result = engine.parse_file(source_path)
            click.echo(json.dumps(
                result.to_dict(), indent=2, ensure_ascii=False
            ))
            return

        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Quiz Bank v{__version__}[/]\n"
                f"[dim]Extracting: {os.path.basename(source_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

        with console.status("Extracting questions..."):
            result = engine.parse_file(source_path)
            questions_file = engine.save(result)

        _display_diagnostics(result.diagnostics)
        _display_validation_table(result.validation.model_dump(mode="json"))
        console.print(f"[bold]Saved:[/] {questions_file}")
        console.print()

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)
    except QuizBankError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        for diagnostic in getattr(e, "diagnostics", []):
            console.print(
                f"  • Q{diagnostic.question_number or '-'} "
                f"{diagnostic.kind.value}: {escape(diagnostic.message)}"
            )
        sys.exit(1)


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
def validate(json_path: str):
    """Validate a question bank JSON file."""
    try:
        result = QuizBankEngine(QuizBankConfig(log_level="WARNING")).load_bank(
            json_path
        )
    except QuizBankError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Validation Report[/]\n"
            f"[dim]File: {json_path}[/]",
            border_style="cyan",
        )
    )
    _display_validation_table(result.validation.model_dump(mode="json"))


@cli.command()
@click.option("--correct", required=True, help="Correct labels, e.g. A,C")
@click.option("--proposed", required=True, help="Selected labels, e.g. C,A")
def grade(correct: str, proposed: str):
    """Grade a selection against the correct answer (exact match)."""
    verdict = validate_answer(parse_selection(correct), parse_selection(proposed))
    if verdict:
        console.print("[green]✓ correct[/]")
    else:
        console.print("[red]✗ incorrect[/]")
        sys.exit(1)


@cli.command()
@click.argument("json_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--randomize", is_flag=True, default=False, help="Shuffle questions")
@click.option("--start", default=None, type=int, help="First question position (1-indexed)")
@click.option("--end", default=None, type=int, help="Last question position (inclusive)")
@click.option("--limit", default=None, type=int, help="Maximum number of questions")
@click.option("--seed", default=None, type=int, help="Random seed for --randomize")
def quiz(
    json_path: str,
    randomize: bool,
    start: int,
    end: int,
    limit: int,
    seed: int,
):
    """Practice a question bank interactively."""
    try:
        result = QuizBankEngine(QuizBankConfig(log_level="WARNING")).load_bank(
            json_path
        )
        session = QuizSession(
            result.questions,
            QuizSettings(
                randomize=randomize, start=start, end=end,
                limit=limit, seed=seed,
            ),
        )
    except QuizBankError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(1)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Detected {session.total} "
            f"{'question' if session.total == 1 else 'questions'}[/]\n"
            f"[dim]Answer with labels (A or A,C). "
            f"n=next p=prev g N=go to s=solution q=finish[/]",
            border_style="cyan",
        )
    )

    while True:
        _display_question(session)
        command = click.prompt("›", default="", show_default=False).strip()
        lowered = command.lower()

        if lowered == "q":
            break
        if lowered in ("n", ""):
            if session.position == session.total:
                if click.confirm("Last question. Finish the quiz?", default=True):
                    break
            session.next()
        elif lowered == "p":
            session.previous()
        elif lowered.startswith("g"):
            target = lowered[1:].strip()
            if not target.isdigit() or not session.goto(int(target)):
                console.print(f"[yellow]Enter a position from 1 to {session.total}[/]")
        elif lowered == "s":
            _display_solution(session.current)
        else:
            try:
                verdict = session.answer(parse_selection(command))
            except QuizSessionError as e:
                console.print(f"[yellow]{escape(str(e))}[/]")
                continue
            if verdict:
                console.print("[green]✓ Correct[/]")
            else:
                console.print("[red]✗ Wrong[/]")
                _display_solution(session.current)

    _display_results(session)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Server host")
@click.option("--port", default=5000, type=int, help="Server port")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
@click.option(
    "--text-service",
    default=None,
    envvar="QUIZBANK_TEXT_SERVICE_URL",
    help="PDF-to-text service URL (default: local PyMuPDF)",
)
def serve(host: str, port: int, debug: bool, text_service: str):
    """Start the HTTP microservice."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]Quiz Bank Service[/]\n"
            f"[dim]Starting on {host}:{port}[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(
        host=host, port=port, debug=debug,
        config={"TEXT_SERVICE_URL": text_service},
    )


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_question(session: QuizSession):
    q = session.current
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Label", style="bold")
    table.add_column("Text")

    selected = session.response() or []
    for label, text in q.answers.items():
        marker = "[cyan]●[/]" if label in selected else " "
        table.add_row(f"{marker} {escape(label)}.", escape(text))

    console.print()
    console.print(Panel(
        escape(q.question_text) or "[dim](no question text)[/]",
        title=f"Question {session.current_number} "
              f"({session.position}/{session.total})",
        subtitle=f"select {q.max_selectable}",
        border_style="blue",
    ))
    console.print(table)


def _display_solution(q: Question):
    community = escape(", ".join(q.community_answer)) or "-"
    score = f" ({q.community_answer_score})" if q.community_answer_score else ""
    console.print(
        f"[bold]Community answer:[/] {community}{score}\n"
        f"[bold]Proposed answer:[/] {escape(', '.join(q.proposed_answer)) or '-'}"
    )


def _display_results(session: QuizSession):
    stats = session.results()
    console.print()

    table = Table(title="Quiz Complete!", border_style="cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Score", f"{stats.percentage}%")
    table.add_row("Correct Answers", f"[green]{stats.correct_answers}[/]")
    wrong = str(stats.wrong_answers)
    if stats.unanswered:
        wrong += f" (including {stats.unanswered} unanswered)"
    table.add_row("Wrong Answers", f"[red]{wrong}[/]")
    table.add_row("Total Questions", str(stats.total_questions))
    if stats.elapsed_seconds is not None:
        minutes, seconds = divmod(stats.elapsed_seconds, 60)
        table.add_row("Time Elapsed", f"{minutes}m {seconds}s")

    console.print(table)
    console.print(f"[bold]{stats.performance_message}[/]")
    console.print()


def _display_diagnostics(diagnostics: list):
    if not diagnostics:
        return

    table = Table(title="Diagnostics", border_style="yellow")
    table.add_column("Question", justify="right")
    table.add_column("Kind", style="bold")
    table.add_column("Message")
    for d in diagnostics:
        table.add_row(
            str(d.question_number) if d.question_number is not None else "-",
            d.kind.value,
            escape(d.message),
        )
    console.print(table)
    console.print()


def _display_validation_table(validation: dict):
    """Display validation report as a rich table."""
    table = Table(title="Validation Report", border_style="green")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_column("Status", justify="center")

    total = validation.get("total_questions", 0)
    usable = validation.get("usable_questions", 0)
    rate = validation.get("success_rate", 0)

    def status_icon(count, threshold=0):
        if count <= threshold:
            return "[green]✓[/]"
        return "[red]✗[/]"

    table.add_row(
        "Total Questions",
        str(total),
        "[green]✓[/]" if total > 0 else "[red]✗[/]",
    )
    table.add_row(
        "Usable Questions",
        f"{usable} ({rate}%)",
        "[green]✓[/]" if rate >= 90 else "[yellow]⚠[/]",
    )

    for label, key in (
        ("Missing Question Numbers", "missing_question_numbers"),
        ("Large Number Gaps", "large_number_gaps"),
        ("Questions Without Options", "questions_without_options"),
        ("Questions Without Proposed Answer", "questions_without_proposed_answer"),
        ("Dangling Labels", "dangling_labels"),
        ("Out-of-universe Labels", "out_of_universe_labels"),
    ):
        count = len(validation.get(key, []))
        table.add_row(label, str(count), status_icon(count))

    disagreements = len(validation.get("community_disagreements", []))
    table.add_row(
        "Community Disagreements",
        str(disagreements),
        "[green]✓[/]" if disagreements == 0 else "[yellow]⚠[/]",
    )

    console.print(table)
    console.print()


# ─── Entry point (for python -m quizbank.cli) ─────────────────────────────────


if __name__ == "__main__":
    cli()
