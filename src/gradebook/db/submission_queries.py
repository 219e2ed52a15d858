"""Latest and best submission lookups.

Both lookups run as a single query that selects one submission for a
(username, exercise) pair and returns its grade rows:

    SubmissionId | QuestionId | Grade | SubmissionTime

ordered by QuestionId and capped at the exercise's question count. The
selection policy lives in the inner query:

- latest: the submission with the greatest SubmissionTime
- best:   the submission with the greatest weighted total,
          SUM(Grade * Points), joining Question on both QuestionId and
          ExerciseId because question ids restart at 0 for every exercise

Grades missing from QuestionGrade contribute nothing to the best total and
read back as 0.0; the returned grade vector always has one slot per question,
indexed by QuestionId.
Ties go to the most recent submission, then the highest id.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import structlog

from gradebook.db.database import Database
from gradebook.models import Exercise, Submission, User, from_epoch_millis

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _QueryPlan:
    """A named, parameterized selection query."""

    name: str
    sql: str

    def parameters(self, user: User, exercise: Exercise) -> dict[str, Any]:
        return {
            "username": user.username,
            "exercise_id": exercise.id,
            "row_limit": exercise.question_count,
        }


_USER_SUBMISSIONS = """
    Submission.UserId IN (SELECT UserId FROM User WHERE Username = :username)
    AND Submission.ExerciseId = :exercise_id
"""

_GRADE_ROWS = """
    SELECT
        Submission.SubmissionId AS SubmissionId,
        QuestionGrade.QuestionId AS QuestionId,
        QuestionGrade.Grade AS Grade,
        Submission.SubmissionTime AS SubmissionTime
    FROM QuestionGrade
    JOIN Submission ON QuestionGrade.SubmissionId = Submission.SubmissionId
    WHERE Submission.SubmissionId IN ({selection})
    ORDER BY QuestionGrade.QuestionId
    LIMIT :row_limit
"""

LATEST_SUBMISSION_PLAN = _QueryPlan(
    name="latest",
    sql=_GRADE_ROWS.format(
        selection=f"""
        SELECT Submission.SubmissionId
        FROM Submission
        WHERE {_USER_SUBMISSIONS}
        ORDER BY Submission.SubmissionTime DESC, Submission.SubmissionId DESC
        LIMIT 1
        """
    ),
)

BEST_SUBMISSION_PLAN = _QueryPlan(
    name="best",
    sql=_GRADE_ROWS.format(
        selection=f"""
        SELECT Submission.SubmissionId
        FROM Submission
        JOIN QuestionGrade
            ON QuestionGrade.SubmissionId = Submission.SubmissionId
        JOIN Question
            ON Question.QuestionId = QuestionGrade.QuestionId
            AND Question.ExerciseId = Submission.ExerciseId
        WHERE {_USER_SUBMISSIONS}
        GROUP BY Submission.SubmissionId
        ORDER BY
            SUM(QuestionGrade.Grade * Question.Points) DESC,
            Submission.SubmissionTime DESC,
            Submission.SubmissionId DESC
        LIMIT 1
        """
    ),
)


class SubmissionQueryEngine:
    """Materializes the latest or best submission of a user for an exercise."""

    def __init__(self, db: Database):
        self.db = db

    def get_last_submission(self, user: User, exercise: Exercise) -> Submission | None:
        """Return the most recent submission, or None if there is none."""
        return self.resolve_submission(user, exercise, LATEST_SUBMISSION_PLAN)

    def get_best_submission(self, user: User, exercise: Exercise) -> Submission | None:
        """Return the submission with the highest weighted total, or None."""
        return self.resolve_submission(user, exercise, BEST_SUBMISSION_PLAN)

    def resolve_submission(
        self,
        user: User,
        exercise: Exercise,
        plan: _QueryPlan,
    ) -> Submission | None:
        """Run a plan and build a Submission from its grade rows.

        Returns None when the user has no (graded) submission for the
        exercise, including when the user is unknown.
        """
        rows = self.db.connection.execute(
            plan.sql, plan.parameters(user, exercise)
        ).fetchall()

        if not rows:
            logger.debug(
                "submissions.none_found",
                plan=plan.name,
                username=user.username,
                exercise_id=exercise.id,
            )
            return None

        first = rows[0]
        submission = Submission(
            id=first["SubmissionId"],
            user=user,
            exercise=exercise,
            submission_time=from_epoch_millis(first["SubmissionTime"]),
            grades=_grade_vector(rows, exercise.question_count),
        )

        logger.debug(
            "submissions.resolved",
            plan=plan.name,
            submission_id=submission.id,
            grades=len(submission.grades),
        )
        return submission


def _grade_vector(rows: list[sqlite3.Row], question_count: int) -> tuple[float, ...]:
    # Ungraded questions stay at 0.0; ids outside the exercise are ignored.
    grades = [0.0] * question_count
    for row in rows:
        question_id = row["QuestionId"]
        if question_id is not None and 0 <= question_id < question_count:
            grades[question_id] = row["Grade"]
    return tuple(grades)
