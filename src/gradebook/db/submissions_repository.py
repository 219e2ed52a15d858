"""Repository for the Submission and QuestionGrade tables.

The submission id is resolved from the insert itself (caller-given id, or
the cursor's lastrowid on the same connection), so resolution cannot pick up
a row written by someone else in between.
"""

from __future__ import annotations

import sqlite3
from typing import Sequence

import structlog

from gradebook.db.database import Database
from gradebook.db.users_repository import UserStore
from gradebook.errors import StoreResult, StoreStatus
from gradebook.models import Submission, to_epoch_millis

logger = structlog.get_logger(__name__)


class SubmissionWriter:
    """Appends submissions and their per-question grades."""

    def __init__(self, db: Database, users: UserStore | None = None):
        self.db = db
        self.users = users or UserStore(db)

    def store_submission(self, submission: Submission) -> StoreResult:
        """Store a submission together with its grade rows.

        Args:
            submission: Submission to store. If ``submission.id`` is None the
                database assigns one.

        Returns:
            StoreResult with the definitive id, or status USER_NOT_FOUND if the
            submission's user is not in the database (nothing is written)

        Raises:
            ValueError: If there are more grades than the exercise has questions
            sqlite3.IntegrityError: If the exercise doesn't exist or the id is taken
        """
        username = submission.user.username
        user_id = self.users.lookup_user_id(username)
        if user_id is None:
            logger.info("submissions.user_not_found", username=username)
            return StoreResult(
                status=StoreStatus.USER_NOT_FOUND,
                id=None,
                message=f"User not found: {username}",
            )

        if len(submission.grades) > submission.exercise.question_count:
            raise ValueError(
                f"{len(submission.grades)} grades for exercise {submission.exercise.id} "
                f"with {submission.exercise.question_count} questions"
            )

        exercise_id = submission.exercise.id
        submission_time = to_epoch_millis(submission.submission_time)

        with self.db.transaction() as conn:
            if submission.id is None:
                cursor = conn.execute(
                    "INSERT INTO Submission (UserId, ExerciseId, SubmissionTime) "
                    "VALUES (?, ?, ?)",
                    (user_id, exercise_id, submission_time),
                )
                submission_id = cursor.lastrowid
            else:
                conn.execute(
                    "INSERT INTO Submission "
                    "(UserId, ExerciseId, SubmissionTime, SubmissionId) "
                    "VALUES (?, ?, ?, ?)",
                    (user_id, exercise_id, submission_time, submission.id),
                )
                submission_id = submission.id

            _insert_grades(conn, submission_id, exercise_id, submission.grades)

        logger.info(
            "submissions.stored",
            submission_id=submission_id,
            username=username,
            exercise_id=exercise_id,
            grades=len(submission.grades),
        )
        return StoreResult(
            status=StoreStatus.STORED,
            id=submission_id,
            message=f"Submission stored: {submission_id}",
        )

    def record_grades(self, submission_id: int, grades: Sequence[float]) -> None:
        """Write grade rows for an already stored submission.

        Grade i is recorded for the question at position i.

        Raises:
            LookupError: If the submission doesn't exist
            ValueError: If there are more grades than the exercise has questions
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT ExerciseId FROM Submission WHERE SubmissionId = ?",
                (submission_id,),
            ).fetchone()
            if row is None:
                raise LookupError(f"Submission not found: {submission_id}")

            _insert_grades(conn, submission_id, row["ExerciseId"], grades)

        logger.debug("submissions.grades_recorded", submission_id=submission_id)


def _insert_grades(
    conn: sqlite3.Connection,
    submission_id: int,
    exercise_id: int,
    grades: Sequence[float],
) -> None:
    if not grades:
        return

    (question_count,) = conn.execute(
        "SELECT COUNT(*) FROM Question WHERE ExerciseId = ?", (exercise_id,)
    ).fetchone()
    if len(grades) > question_count:
        raise ValueError(
            f"{len(grades)} grades for exercise {exercise_id} "
            f"with {question_count} stored questions"
        )

    conn.executemany(
        "INSERT INTO QuestionGrade (SubmissionId, QuestionId, Grade) VALUES (?, ?, ?)",
        [(submission_id, position, float(g)) for position, g in enumerate(grades)],
    )
