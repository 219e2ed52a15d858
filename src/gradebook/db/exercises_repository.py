"""Repository for the Exercise and Question tables."""

from __future__ import annotations

import sqlite3

import structlog

from gradebook.db.database import Database
from gradebook.errors import StoreResult, StoreStatus
from gradebook.models import Exercise, Question, from_epoch_millis, to_epoch_millis

logger = structlog.get_logger(__name__)


class ExerciseStore:
    """Insert-if-absent and bulk load of exercises with their questions."""

    def __init__(self, db: Database):
        self.db = db

    def add_exercise(self, exercise: Exercise) -> StoreResult:
        """Add an exercise and its questions.

        Questions are stored in declared order; each gets its 0-based
        position as QuestionId.

        Returns:
            StoreResult with status STORED, or ALREADY_EXISTS if an exercise
            with this id is present (nothing is written in that case)
        """
        with self.db.transaction() as conn:
            existing = conn.execute(
                "SELECT 1 FROM Exercise WHERE ExerciseId = ?", (exercise.id,)
            ).fetchone()

            if existing is not None:
                logger.info("exercises.already_exists", exercise_id=exercise.id)
                return StoreResult(
                    status=StoreStatus.ALREADY_EXISTS,
                    id=exercise.id,
                    message=f"Exercise already exists: {exercise.id}",
                )

            conn.execute(
                "INSERT INTO Exercise (ExerciseId, Name, DueDate) VALUES (?, ?, ?)",
                (exercise.id, exercise.name, to_epoch_millis(exercise.due_date)),
            )
            conn.executemany(
                'INSERT INTO Question (ExerciseId, QuestionId, Name, "Desc", Points) '
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (exercise.id, position, q.name, q.desc, q.points)
                    for position, q in enumerate(exercise.questions)
                ],
            )

        logger.info(
            "exercises.added",
            exercise_id=exercise.id,
            questions=exercise.question_count,
        )
        return StoreResult(
            status=StoreStatus.STORED,
            id=exercise.id,
            message=f"Exercise stored: {exercise.id}",
        )

    def load_all_exercises(self) -> list[Exercise]:
        """Return every exercise sorted by id, each with its questions.

        Questions are fetched with one query per exercise.
        """
        conn = self.db.connection
        rows = conn.execute(
            "SELECT ExerciseId, Name, DueDate FROM Exercise ORDER BY ExerciseId"
        ).fetchall()

        exercises = [self._row_to_exercise(conn, row) for row in rows]
        logger.debug("exercises.loaded", count=len(exercises))
        return exercises

    def get_exercise(self, exercise_id: int) -> Exercise | None:
        conn = self.db.connection
        row = conn.execute(
            "SELECT ExerciseId, Name, DueDate FROM Exercise WHERE ExerciseId = ?",
            (exercise_id,),
        ).fetchone()

        if row is None:
            return None

        return self._row_to_exercise(conn, row)

    def _row_to_exercise(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Exercise:
        exercise = Exercise(
            id=row["ExerciseId"],
            name=row["Name"],
            due_date=from_epoch_millis(row["DueDate"] or 0),
        )
        question_rows = conn.execute(
            'SELECT QuestionId, Name, "Desc", Points FROM Question '
            "WHERE ExerciseId = ? ORDER BY QuestionId",
            (exercise.id,),
        ).fetchall()
        exercise.questions = [
            Question(
                name=q["Name"],
                desc=q["Desc"],
                points=q["Points"],
                question_id=q["QuestionId"],
            )
            for q in question_rows
        ]
        return exercise
