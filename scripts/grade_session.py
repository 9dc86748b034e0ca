# ABOUTME: Provides a CLI that analyzes and grades a student's timed SQL attempt log.
# ABOUTME: Also verifies a single submission against a reference query on a SQLite dataset.

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from src.analysis.statistics import analyze_session
from src.common.attempt_store import filter_student, load_attempts, student_ids
from src.common.rounds import load_round_definitions
from src.grading.config import load_rubric_config
from src.grading.engine import grade_session
from src.grading.report import report_payload
from src.verification.comparison import verify_submission
from src.verification.execution import SqliteExecutionEngine

console = Console()
app = typer.Typer(help="Analyze learning curves and grade timed SQL practice sessions.")

SEVERITY_COLORS = {"info": "cyan", "warning": "yellow", "critical": "red"}


@app.command()
def report(
    attempts_path: Path = typer.Option(..., "--attempts", exists=True, dir_okay=False, help="Attempt log (.json, .csv, .parquet)."),
    config: Path = typer.Option(None, "--config", exists=True, dir_okay=False, help="Study YAML with rubric and rounds sections."),
    student_id: str = typer.Option(None, "--student-id", help="Student to grade when the log holds several."),
    output: Path = typer.Option(None, "--output", help="Optional JSON path for the full report."),
) -> None:
    """
    Fit the learning curve, summarize rounds, and grade one student's session.
    """
    try:
        attempts = load_attempts(attempts_path)
        rounds = load_round_definitions(config)
        rubric = load_rubric_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    students = student_ids(attempts)
    if student_id is None:
        if len(students) > 1:
            console.print(f"[red]Log holds {len(students)} students; pass --student-id (one of: {', '.join(students)})[/red]")
            raise typer.Exit(code=1)
        student_id = students[0] if students else "unknown"
    else:
        attempts = filter_student(attempts, student_id)
        if not attempts:
            console.print(f"[red]No attempts for student {student_id}[/red]")
            raise typer.Exit(code=1)

    typer.echo(f"[report] Analyzing {len(attempts)} attempts for student='{student_id}'")
    analysis = analyze_session(attempts, rounds)
    grading = grade_session(analysis, rubric)

    console.rule("[bold blue]SQL Time Study Report[/bold blue]")
    lc = analysis.learning_curve
    console.print(
        f"[bold]Learning curve:[/] exponent={lc.exponent} rate={lc.learning_rate:.2%} "
        f"R²={lc.r_squared} T1={lc.predicted_first_task_time}s (n={lc.sample_size})"
    )

    rounds_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Round", "Title", "Done", "Avg (s)", "Median (s)", "Attempts", "First try"):
        rounds_table.add_column(column)
    for summary in analysis.round_summaries:
        rounds_table.add_row(
            str(summary.round),
            summary.title,
            f"{summary.tasks_completed}/{summary.total_tasks}",
            f"{summary.avg_time_sec:.2f}",
            f"{summary.median_time_sec:.2f}",
            str(summary.total_attempts),
            f"{summary.first_try_success_rate:.0%}",
        )
    console.print(rounds_table)

    criteria_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Criterion", "Weight", "Score", "Weighted", "Rationale"):
        criteria_table.add_column(column)
    for criterion in grading.criteria:
        criteria_table.add_row(
            criterion.name,
            f"{criterion.weight:.2f}",
            str(criterion.raw_score),
            f"{criterion.weighted_score:.2f}",
            criterion.rationale,
        )
    console.print(criteria_table)

    for flag in grading.flags:
        color = SEVERITY_COLORS.get(flag.severity, "white")
        console.print(f"[{color}]{flag.code} ({flag.severity})[/{color}] {flag.message}")

    console.print(f"[bold green]{grading.total_score}/100 ({grading.letter_grade})[/bold green]")
    console.print(grading.summary)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        payload = report_payload(attempts, analysis, grading)
        output.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
        typer.echo(f"[report] Wrote report to {output}")


@app.command()
def verify(
    database: Path = typer.Option(..., "--database", exists=True, dir_okay=False, help="SQLite database file."),
    submitted: str = typer.Option(..., "--submitted", help="Submitted SQL query."),
    reference: str = typer.Option(..., "--reference", help="Reference SQL query."),
    order_matters: bool = typer.Option(False, "--order-matters", help="Require rows in the reference order."),
) -> None:
    """
    Check a submitted query against the reference result set.
    """
    typer.echo(f"[verify] Running both queries against {database}")
    result = verify_submission(submitted, reference, database, SqliteExecutionEngine(), order_matters)
    if result.is_match:
        console.print(f"[green]✅ {result.message}[/green]")
        return
    console.print(f"[red]❌ {result.message}[/red]")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
