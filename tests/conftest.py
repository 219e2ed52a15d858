"""Shared fixtures: every test gets its own database under tmp_path."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gradebook.config import clear_config_cache
from gradebook.models import Exercise, Submission, User
from gradebook.service import Gradebook

BASE_TIME = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_config():
    """Never reuse a config cached by another test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "db" / "gradebook.db"


@pytest.fixture
def gradebook(db_path):
    """Open gradebook on a temporary database."""
    with Gradebook(db_path) as gb:
        yield gb


@pytest.fixture
def sample_exercise() -> Exercise:
    """Exercise 1 with three questions worth 2, 3 and 5 points."""
    exercise = Exercise(id=1, name="Sets and relations", due_date=BASE_TIME + timedelta(days=7))
    exercise.add_question("Union", "Compute A ∪ B", 2)
    exercise.add_question("Intersection", "Compute A ∩ B", 3)
    exercise.add_question("Relations", "Is R transitive?", 5)
    return exercise


@pytest.fixture
def sample_user() -> User:
    return User(username="ana", firstname="Ana", lastname="García")


@pytest.fixture
def populated(gradebook, sample_exercise, sample_user):
    """Gradebook with the sample user and exercise stored."""
    gradebook.add_or_update_user(sample_user, "secret")
    gradebook.add_exercise(sample_exercise)
    return gradebook


@pytest.fixture
def submit(populated, sample_user, sample_exercise):
    """Store a submission for the sample user; returns its id."""

    def _submit(grades, minutes=0, user=None, exercise=None, submission_id=None):
        result = populated.store_submission(
            Submission(
                id=submission_id,
                user=user or sample_user,
                exercise=exercise or sample_exercise,
                submission_time=BASE_TIME + timedelta(minutes=minutes),
                grades=grades,
            )
        )
        assert result.success, result.message
        return result.id

    return _submit
