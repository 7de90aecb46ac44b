"""Board domain errors.

Every error carries a machine-readable ``code`` and a ``category`` so the
HTTP layer can answer with a distinct status and clients can branch on
"not found" vs "conflict" vs "bad input".
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """High-level error categories."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


class BoardError(Exception):
    """Base exception for board operations."""

    def __init__(self, message: str, code: str, category: ErrorCategory, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.status_code = status_code

    def to_response(self) -> dict[str, str]:
        """Structured error body."""
        return {
            "detail": self.message,
            "code": self.code,
            "category": self.category.value,
        }


# --- validation (400) ---


class BoardValidationError(BoardError):
    """Malformed request body (e.g. missing board name)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "VALIDATION_ERROR", ErrorCategory.VALIDATION, 400)


class InvalidBoardIdError(BoardError):
    """Board id is not representable as a store key."""

    def __init__(self, board_id: str) -> None:
        super().__init__("invalid board id", "INVALID_ID", ErrorCategory.VALIDATION, 400)
        self.board_id = board_id


# --- not found (404) ---


class BoardNotFoundError(BoardError):
    def __init__(self, board_id: str) -> None:
        super().__init__("board not found", "BOARD_NOT_FOUND", ErrorCategory.NOT_FOUND, 404)
        self.board_id = board_id


class AchievementNotFoundError(BoardError):
    def __init__(self, achievement_id: str) -> None:
        super().__init__("achievement not found", "ACHIEVEMENT_NOT_FOUND", ErrorCategory.NOT_FOUND, 404)
        self.achievement_id = achievement_id


# --- conflict (409) ---


class DuplicateAchievementError(BoardError):
    def __init__(self, achievement_id: str) -> None:
        super().__init__(
            "achievement with that id already exists",
            "DUPLICATE_ACHIEVEMENT",
            ErrorCategory.CONFLICT,
            409,
        )
        self.achievement_id = achievement_id
