"""CLI commands for the gradebook.

Commands:
- init-db: Create the database and its tables
- add-user / login: Manage users and check credentials
- add-exercise / list-exercises: Manage exercises
- submit: Store a graded submission
- last / best: Show the latest or best-scoring submission
"""

from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.table import Table

from gradebook.config import configure_logging, load_app_config
from gradebook.errors import StorageUnavailableError, StoreStatus
from gradebook.models import Exercise, Submission
from gradebook.service import Gradebook

app = typer.Typer(
    name="gradebook",
    help="Store users, exercises and graded submissions.",
    no_args_is_help=True,
)

console = Console()

DB_OPTION_HELP = "Path to the SQLite database (default: from config)"


class ExerciseFileError(Exception):
    """Raised when an exercise YAML file can't be used."""

    pass


@app.callback()
def main() -> None:
    """Store users, exercises and graded submissions."""
    configure_logging(load_app_config().logging.level)


def _open_gradebook(db: str | None) -> Gradebook:
    """Open the gradebook at ``db`` (or the configured path), or exit."""
    path = db or load_app_config().database.path
    try:
        return Gradebook(path).open()
    except StorageUnavailableError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _load_exercise_file(path: Path) -> Exercise:
    """Build an Exercise from a YAML file.

    Expected keys: id, name, due_date, questions (list of name/desc/points).
    """
    if not path.exists():
        raise ExerciseFileError(f"File not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ExerciseFileError(f"Invalid YAML in {path}: {e}") from e

    missing = [k for k in ("id", "name", "due_date") if k not in data]
    if missing:
        raise ExerciseFileError(f"Missing keys in {path}: {', '.join(missing)}")

    try:
        exercise = Exercise(
            id=int(data["id"]),
            name=str(data["name"]),
            due_date=_parse_datetime(data["due_date"]),
        )
        for q in data.get("questions") or []:
            exercise.add_question(
                name=str(q["name"]),
                desc=str(q.get("desc", "")),
                points=int(q.get("points", 1)),
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ExerciseFileError(f"Invalid exercise in {path}: {e}") from e

    return exercise


def _resolve_user_and_exercise(gradebook: Gradebook, username: str, exercise_id: int):
    user = gradebook.get_user(username)
    if user is None:
        console.print(f"[red]✗ User not found: {username}[/red]")
        raise typer.Exit(code=1)

    exercise = gradebook.get_exercise(exercise_id)
    if exercise is None:
        console.print(f"[red]✗ Exercise not found: {exercise_id}[/red]")
        raise typer.Exit(code=1)

    return user, exercise


def _print_submission(label: str, submission: Submission) -> None:
    exercise = submission.exercise
    console.print(f"[green]✓ {label} submission: {submission.id}[/green]")
    console.print(f"  [dim]user:[/dim]     {submission.user.username}")
    console.print(f"  [dim]exercise:[/dim] {exercise.id} ({exercise.name})")
    console.print(f"  [dim]time:[/dim]     {submission.submission_time.isoformat()}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Points", justify="right")
    table.add_column("Grade", justify="right")
    for question, grade in zip(exercise.questions, submission.grades):
        table.add_row(
            str(question.question_id),
            question.name,
            str(question.points),
            f"{grade:g}",
        )
    console.print(table)
    console.print(f"  [dim]total:[/dim]    {submission.total_score:g} / {exercise.total_points}")


@app.command(name="init-db")
def init_db(
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Create the database and its tables if needed."""
    gradebook = _open_gradebook(db)
    gradebook.close()
    console.print(f"[green]✓ Database ready: {gradebook.db.path}[/green]")


@app.command(name="add-user")
def add_user(
    username: str = typer.Argument(..., help="Unique username"),
    first: str = typer.Option("", "--first", "-f", help="First name"),
    last: str = typer.Option("", "--last", "-l", help="Last name"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password (stored in plaintext)"
    ),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Add a user, or update name and password of an existing one."""
    with _open_gradebook(db) as gradebook:
        user_id = gradebook.upsert_user(username, first, last, password)
    console.print(f"[green]✓ User saved: {username}[/green]")
    console.print(f"  [dim]user_id:[/dim] {user_id}")


@app.command()
def login(
    username: str = typer.Argument(..., help="Username"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Check a user's credentials."""
    with _open_gradebook(db) as gradebook:
        verified = gradebook.verify_credentials(username, password)

    if not verified:
        console.print("[red]✗ Invalid username or password[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Credentials valid: {username}[/green]")


@app.command(name="add-exercise")
def add_exercise(
    file: str = typer.Argument(..., help="Path to exercise YAML file"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Add an exercise and its questions from a YAML file."""
    try:
        exercise = _load_exercise_file(Path(file).expanduser())
    except ExerciseFileError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    with _open_gradebook(db) as gradebook:
        result = gradebook.add_exercise(exercise)

    if result.status is StoreStatus.ALREADY_EXISTS:
        console.print(f"[yellow]⚠ {result.message}[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [dim]questions:[/dim] {exercise.question_count}")


@app.command(name="list-exercises")
def list_exercises(
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """List all exercises sorted by id."""
    with _open_gradebook(db) as gradebook:
        exercises = gradebook.load_all_exercises()

    if not exercises:
        console.print("[yellow]No exercises found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Due")
    table.add_column("Questions", justify="right")
    table.add_column("Points", justify="right")
    for exercise in exercises:
        table.add_row(
            str(exercise.id),
            exercise.name,
            exercise.due_date.strftime("%Y-%m-%d %H:%M"),
            str(exercise.question_count),
            str(exercise.total_points),
        )
    console.print(table)


@app.command()
def submit(
    username: str = typer.Argument(..., help="Submitting user"),
    exercise_id: int = typer.Argument(..., help="Exercise ID"),
    grades: list[float] = typer.Argument(..., help="One grade per question, in order"),
    submission_id: int | None = typer.Option(None, "--id", help="Explicit submission ID"),
    submitted_at: str | None = typer.Option(
        None, "--time", "-t", help="Submission time, ISO 8601 (default: now)"
    ),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Store a graded submission."""
    try:
        submission_time = (
            _parse_datetime(submitted_at) if submitted_at else datetime.now(timezone.utc)
        )
    except ValueError as e:
        console.print(f"[red]✗ Invalid --time: {e}[/red]")
        raise typer.Exit(code=1)

    with _open_gradebook(db) as gradebook:
        user, exercise = _resolve_user_and_exercise(gradebook, username, exercise_id)
        if len(grades) > exercise.question_count:
            console.print(
                f"[red]✗ {len(grades)} grades for {exercise.question_count} questions[/red]"
            )
            raise typer.Exit(code=1)

        result = gradebook.store_submission(
            Submission(
                id=submission_id,
                user=user,
                exercise=exercise,
                submission_time=submission_time,
                grades=tuple(grades),
            )
        )

    if not result.success:
        console.print(f"[red]✗ {result.message}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ {result.message}[/green]")


def _show_submission(username: str, exercise_id: int, db: str | None, best: bool) -> None:
    label = "Best" if best else "Latest"
    with _open_gradebook(db) as gradebook:
        user, exercise = _resolve_user_and_exercise(gradebook, username, exercise_id)
        if best:
            submission = gradebook.get_best_submission(user, exercise)
        else:
            submission = gradebook.get_last_submission(user, exercise)

    if submission is None:
        console.print(f"[yellow]⚠ No submission from {username} for exercise {exercise_id}[/yellow]")
        raise typer.Exit(code=1)

    _print_submission(label, submission)


@app.command()
def last(
    username: str = typer.Argument(..., help="Username"),
    exercise_id: int = typer.Argument(..., help="Exercise ID"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show the latest submission of a user for an exercise."""
    _show_submission(username, exercise_id, db, best=False)


@app.command()
def best(
    username: str = typer.Argument(..., help="Username"),
    exercise_id: int = typer.Argument(..., help="Exercise ID"),
    db: str | None = typer.Option(None, "--db", help=DB_OPTION_HELP),
) -> None:
    """Show the best-scoring submission of a user for an exercise."""
    _show_submission(username, exercise_id, db, best=True)
