"""Gradebook facade: one storage handle shared by all stores."""

from __future__ import annotations

from pathlib import Path

from gradebook.db import (
    Database,
    ExerciseStore,
    SubmissionQueryEngine,
    SubmissionWriter,
    UserStore,
)
from gradebook.errors import StoreResult
from gradebook.models import Exercise, Submission, User


class Gradebook:
    """Public operations over users, exercises and submissions.

    Usage:
        with Gradebook("db/gradebook.db") as gradebook:
            gradebook.upsert_user("ana", "Ana", "García", "secret")
    """

    def __init__(self, path: Path | str):
        self.db = Database(path)
        self.users = UserStore(self.db)
        self.exercises = ExerciseStore(self.db)
        self.submissions = SubmissionWriter(self.db, self.users)
        self.queries = SubmissionQueryEngine(self.db)

    def open(self) -> Gradebook:
        self.db.open()
        return self

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> Gradebook:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Users

    def upsert_user(self, username: str, firstname: str, lastname: str, password: str) -> int:
        return self.users.upsert_user(username, firstname, lastname, password)

    def add_or_update_user(self, user: User, password: str) -> int:
        return self.users.add_or_update_user(user, password)

    def get_user(self, username: str) -> User | None:
        return self.users.get_user(username)

    def verify_credentials(self, username: str, password: str) -> bool:
        return self.users.verify_credentials(username, password)

    # Exercises

    def add_exercise(self, exercise: Exercise) -> StoreResult:
        return self.exercises.add_exercise(exercise)

    def load_all_exercises(self) -> list[Exercise]:
        return self.exercises.load_all_exercises()

    def get_exercise(self, exercise_id: int) -> Exercise | None:
        return self.exercises.get_exercise(exercise_id)

    # Submissions

    def store_submission(self, submission: Submission) -> StoreResult:
        return self.submissions.store_submission(submission)

    def get_last_submission(self, user: User, exercise: Exercise) -> Submission | None:
        return self.queries.get_last_submission(user, exercise)

    def get_best_submission(self, user: User, exercise: Exercise) -> Submission | None:
        return self.queries.get_best_submission(user, exercise)
