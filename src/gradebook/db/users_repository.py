"""Repository for the User table.

Note: passwords are stored and compared in plaintext. This is insecure and
kept only for compatibility with the existing table layout; a real
deployment must store a salted password hash instead.
"""

from __future__ import annotations

import structlog

from gradebook.db.database import Database
from gradebook.models import User

logger = structlog.get_logger(__name__)


class UserStore:
    """Upsert and credential checks for users, keyed by username."""

    def __init__(self, db: Database):
        self.db = db

    def upsert_user(
        self,
        username: str,
        firstname: str,
        lastname: str,
        password: str,
    ) -> int:
        """Add a user, or update name and password of an existing one.

        The username is the natural key and is never changed.

        Returns:
            The user's id (stable across repeated upserts)
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT UserId FROM User WHERE Username = ?", (username,)
            ).fetchone()

            if row is not None:
                conn.execute(
                    "UPDATE User SET Firstname = ?, Lastname = ?, Password = ? "
                    "WHERE Username = ?",
                    (firstname, lastname, password, username),
                )
                user_id = row["UserId"]
                logger.debug("users.updated", username=username, user_id=user_id)
            else:
                cursor = conn.execute(
                    "INSERT INTO User (Username, Firstname, Lastname, Password) "
                    "VALUES (?, ?, ?, ?)",
                    (username, firstname, lastname, password),
                )
                user_id = cursor.lastrowid
                logger.info("users.inserted", username=username, user_id=user_id)

        return user_id

    def add_or_update_user(self, user: User, password: str) -> int:
        """Upsert from a User record."""
        return self.upsert_user(user.username, user.firstname, user.lastname, password)

    def lookup_user_id(self, username: str) -> int | None:
        """Return the user's id, or None if the username is unknown."""
        row = self.db.connection.execute(
            "SELECT UserId FROM User WHERE Username = ?", (username,)
        ).fetchone()
        return None if row is None else row["UserId"]

    def get_user(self, username: str) -> User | None:
        row = self.db.connection.execute(
            "SELECT Username, Firstname, Lastname FROM User WHERE Username = ?",
            (username,),
        ).fetchone()
        if row is None:
            return None
        return User(
            username=row["Username"],
            firstname=row["Firstname"] or "",
            lastname=row["Lastname"] or "",
        )

    def verify_credentials(self, username: str, password: str) -> bool:
        """True iff a user matches both username and password exactly.

        Plaintext comparison, see module note. An empty password never
        verifies.
        """
        if not password:
            return False

        row = self.db.connection.execute(
            "SELECT 1 FROM User WHERE Username = ? AND Password = ?",
            (username, password),
        ).fetchone()

        verified = row is not None
        logger.debug("users.login_checked", username=username, verified=verified)
        return verified
