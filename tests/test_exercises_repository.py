"""Tests for exercise storage and loading."""

from datetime import datetime, timedelta, timezone

from gradebook.errors import StoreStatus
from gradebook.models import Exercise

DUE = datetime(2026, 5, 4, 23, 59, 59, 500000, tzinfo=timezone.utc)


def _count(gradebook, table: str) -> int:
    (count,) = gradebook.db.connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    return count


def _exercise(exercise_id: int, *points: int) -> Exercise:
    exercise = Exercise(id=exercise_id, name=f"Exercise {exercise_id}", due_date=DUE)
    for i, p in enumerate(points):
        exercise.add_question(f"q{i}", f"Question {i}", p)
    return exercise


class TestAddExercise:
    """Tests for add_exercise."""

    def test_add_new_exercise(self, gradebook, sample_exercise):
        result = gradebook.add_exercise(sample_exercise)

        assert result.success
        assert result.status is StoreStatus.STORED
        assert result.id == sample_exercise.id
        assert _count(gradebook, "Question") == 3

    def test_add_twice_reports_already_exists(self, gradebook, sample_exercise):
        """Second add of the same id is a no-op with ALREADY_EXISTS."""
        gradebook.add_exercise(sample_exercise)
        result = gradebook.add_exercise(sample_exercise)

        assert not result.success
        assert result.status is StoreStatus.ALREADY_EXISTS
        assert _count(gradebook, "Exercise") == 1
        assert _count(gradebook, "Question") == 3

    def test_existing_id_with_different_content_is_not_overwritten(self, gradebook):
        gradebook.add_exercise(_exercise(7, 1, 2))
        result = gradebook.add_exercise(_exercise(7, 9, 9, 9))

        assert result.status is StoreStatus.ALREADY_EXISTS
        loaded = gradebook.get_exercise(7)
        assert [q.points for q in loaded.questions] == [1, 2]

    def test_question_ids_follow_declared_order(self, gradebook, sample_exercise):
        gradebook.add_exercise(sample_exercise)
        rows = gradebook.db.connection.execute(
            "SELECT QuestionId, Name FROM Question WHERE ExerciseId = ? ORDER BY QuestionId",
            (sample_exercise.id,),
        ).fetchall()
        assert [(r["QuestionId"], r["Name"]) for r in rows] == [
            (0, "Union"),
            (1, "Intersection"),
            (2, "Relations"),
        ]

    def test_exercise_without_questions(self, gradebook):
        result = gradebook.add_exercise(_exercise(3))
        assert result.success
        assert gradebook.get_exercise(3).questions == []


class TestLoadAllExercises:
    """Tests for load_all_exercises."""

    def test_empty_database(self, gradebook):
        assert gradebook.load_all_exercises() == []

    def test_sorted_by_id_regardless_of_insert_order(self, gradebook):
        for exercise_id in (30, 10, 20):
            gradebook.add_exercise(_exercise(exercise_id, 1))

        loaded = gradebook.load_all_exercises()
        assert [e.id for e in loaded] == [10, 20, 30]

    def test_questions_loaded_in_insertion_order(self, gradebook, sample_exercise):
        gradebook.add_exercise(sample_exercise)
        gradebook.add_exercise(_exercise(2, 4, 1))

        loaded = gradebook.load_all_exercises()
        assert [q.name for q in loaded[0].questions] == ["Union", "Intersection", "Relations"]
        assert [q.points for q in loaded[0].questions] == [2, 3, 5]
        assert [q.desc for q in loaded[0].questions][0] == "Compute A ∪ B"
        assert [q.points for q in loaded[1].questions] == [4, 1]

    def test_round_trip_preserves_fields(self, gradebook, sample_exercise):
        gradebook.add_exercise(sample_exercise)
        (loaded,) = gradebook.load_all_exercises()

        assert loaded.id == sample_exercise.id
        assert loaded.name == sample_exercise.name
        assert loaded.due_date == sample_exercise.due_date
        assert [q.question_id for q in loaded.questions] == [0, 1, 2]

    def test_due_date_keeps_milliseconds(self, gradebook):
        gradebook.add_exercise(_exercise(5, 1))
        assert gradebook.get_exercise(5).due_date == DUE

    def test_due_date_far_future(self, gradebook):
        """Epoch milliseconds beyond 32 bits are stored intact."""
        exercise = _exercise(6, 1)
        exercise.due_date = DUE + timedelta(days=365 * 20)
        gradebook.add_exercise(exercise)
        assert gradebook.get_exercise(6).due_date == exercise.due_date


class TestGetExercise:
    """Tests for get_exercise."""

    def test_unknown_id(self, gradebook):
        assert gradebook.get_exercise(404) is None
