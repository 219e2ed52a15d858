"""Domain records for the gradebook.

Timestamps are timezone-aware datetimes in memory and integer epoch
milliseconds in storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

# =============================================================================
# TIME HELPERS
# =============================================================================


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MILLISECOND = timedelta(milliseconds=1)


def to_epoch_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // _MILLISECOND


def from_epoch_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=millis)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class User:
    """A course participant.

    The password is not part of the record; it is handed to the user store
    separately and stored there in plaintext.
    """

    username: str
    firstname: str = ""
    lastname: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "firstname": self.firstname,
            "lastname": self.lastname,
        }


@dataclass
class Question:
    """One gradable item of an exercise."""

    name: str
    desc: str
    points: int
    question_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "name": self.name,
            "desc": self.desc,
            "points": self.points,
        }


@dataclass
class Exercise:
    """A gradable assignment made of ordered questions."""

    id: int
    name: str
    due_date: datetime
    questions: list[Question] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    def add_question(self, name: str, desc: str, points: int) -> Question:
        """Append a question; its id is its 0-based position."""
        question = Question(
            name=name,
            desc=desc,
            points=points,
            question_id=len(self.questions),
        )
        self.questions.append(question)
        return question

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "due_date": self.due_date.isoformat(),
            "questions": [q.to_dict() for q in self.questions],
            "total_points": self.total_points,
        }


@dataclass(frozen=True)
class Submission:
    """One attempt by a user at an exercise.

    ``id`` is None until storage assigns one. ``grades`` holds one value per
    question, in question order, and is immutable once constructed. A naive
    ``submission_time`` is taken as UTC, the same way storage reads it back.
    """

    id: int | None
    user: User
    exercise: Exercise
    submission_time: datetime
    grades: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "grades", _as_grades(self.grades))
        if self.submission_time.tzinfo is None:
            object.__setattr__(
                self, "submission_time", self.submission_time.replace(tzinfo=timezone.utc)
            )

    @property
    def total_score(self) -> float:
        """Weighted total: sum of grade times question points."""
        return sum(
            grade * question.points
            for grade, question in zip(self.grades, self.exercise.questions)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.user.username,
            "exercise_id": self.exercise.id,
            "submission_time": self.submission_time.isoformat(),
            "grades": list(self.grades),
            "total_score": self.total_score,
        }


def _as_grades(values: Iterable[float]) -> tuple[float, ...]:
    return tuple(float(v) for v in values)
