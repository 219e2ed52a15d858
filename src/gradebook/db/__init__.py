"""Database module for SQLite persistence.

Provides:
- Storage handle and schema creation (database)
- User upsert and credential checks (users_repository)
- Exercise and question storage (exercises_repository)
- Submission and grade storage (submissions_repository)
- Latest/best submission lookups (submission_queries)
"""

from gradebook.db.database import Database
from gradebook.db.exercises_repository import ExerciseStore
from gradebook.db.submission_queries import SubmissionQueryEngine
from gradebook.db.submissions_repository import SubmissionWriter
from gradebook.db.users_repository import UserStore

__all__ = [
    "Database",
    "ExerciseStore",
    "SubmissionQueryEngine",
    "SubmissionWriter",
    "UserStore",
]
