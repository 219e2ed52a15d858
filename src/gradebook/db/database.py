"""SQLite storage handle and schema management.

A Database is opened once, passed to every store that needs it, and closed
on shutdown. There is no module-level connection.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

from gradebook.errors import StorageUnavailableError

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/gradebook.db")

MEMORY_PATH = ":memory:"


class Database:
    """Explicit handle around a single SQLite connection.

    Example:
        with Database(tmp_path / "gradebook.db") as db:
            with db.transaction() as conn:
                conn.execute("INSERT INTO Exercise ...")
    """

    def __init__(self, path: Path | str = DEFAULT_DB_PATH):
        self.path = path if path == MEMORY_PATH else Path(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageUnavailableError(str(self.path), "database is not open")
        return self._conn

    def open(self) -> Database:
        """Open the connection and make sure the schema exists.

        Raises:
            StorageUnavailableError: If the file cannot be created or opened
        """
        if self._conn is not None:
            return self

        try:
            if isinstance(self.path, Path):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailableError(str(self.path), str(e)) from e

        conn.row_factory = sqlite3.Row
        self._conn = conn

        try:
            conn.execute("PRAGMA foreign_keys = ON")
            self.ensure_schema()
        except sqlite3.Error as e:
            self.close()
            raise StorageUnavailableError(str(self.path), str(e)) from e

        logger.info("database.opened", path=str(self.path))
        return self

    def close(self) -> None:
        """Close the connection if it is open."""
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("database.closed", path=str(self.path))

    def __enter__(self) -> Database:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Run statements as one unit: commit on success, roll back on error."""
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def ensure_schema(self) -> None:
        """Create the five gradebook tables if they don't exist.

        Uses IF NOT EXISTS so repeated calls leave existing data untouched.
        """
        _create_schema(self.connection)
        logger.debug("database.schema_ready", path=str(self.path))


def _create_schema(conn: sqlite3.Connection) -> None:
    # QuestionId is only unique per exercise, so QuestionGrade cannot declare
    # a single-column foreign key to Question; the writer checks it instead.
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS User (
            UserId INTEGER PRIMARY KEY,
            Username TEXT UNIQUE,
            Firstname TEXT,
            Lastname TEXT,
            Password TEXT
        );

        CREATE TABLE IF NOT EXISTS Exercise (
            ExerciseId INTEGER PRIMARY KEY,
            Name TEXT,
            DueDate INTEGER
        );

        CREATE TABLE IF NOT EXISTS Question (
            ExerciseId INTEGER,
            QuestionId INTEGER,
            Name TEXT,
            "Desc" TEXT,
            Points INTEGER,
            PRIMARY KEY (ExerciseId, QuestionId),
            FOREIGN KEY (ExerciseId) REFERENCES Exercise(ExerciseId)
        );

        CREATE TABLE IF NOT EXISTS Submission (
            SubmissionId INTEGER PRIMARY KEY,
            UserId INTEGER,
            ExerciseId INTEGER,
            SubmissionTime INTEGER,
            FOREIGN KEY (ExerciseId) REFERENCES Exercise(ExerciseId)
        );

        CREATE TABLE IF NOT EXISTS QuestionGrade (
            SubmissionId INTEGER,
            QuestionId INTEGER,
            Grade REAL,
            PRIMARY KEY (SubmissionId, QuestionId),
            FOREIGN KEY (SubmissionId) REFERENCES Submission(SubmissionId)
        );

        CREATE INDEX IF NOT EXISTS idx_submission_user_exercise
            ON Submission(UserId, ExerciseId);
        """
    )
