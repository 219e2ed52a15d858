"""Result values and errors shared by the stores.

Expected outcomes (an exercise that already exists, a submission for an
unknown user) are reported as StoreResult values. Storage failures that the
caller cannot act on are exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StoreStatus(str, Enum):
    """Outcome of a write operation."""

    STORED = "stored"
    ALREADY_EXISTS = "already_exists"
    USER_NOT_FOUND = "user_not_found"


@dataclass(frozen=True)
class StoreResult:
    """Result of adding an exercise or storing a submission."""

    status: StoreStatus
    id: int | None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is StoreStatus.STORED


class GradebookError(Exception):
    """Base error for the gradebook package."""

    pass


class StorageUnavailableError(GradebookError):
    """Raised when the database cannot be opened or the handle is closed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Storage unavailable ({path}): {reason}")
