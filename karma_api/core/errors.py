"""
Domain error taxonomy.

Every failure the service layer can report is one ``ErrorKind``.  The kind
travels inside a single ``DomainError`` exception and is mapped to an HTTP
status in exactly one place (``karma_api.core.exceptions``).
"""

from __future__ import annotations

import enum


class ErrorFamily(str, enum.Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    AUTH = "auth"


class ErrorKind(str, enum.Enum):
    USER_NOT_FOUND = "user_not_found"
    VOTER_NOT_FOUND = "voter_not_found"
    VOTEE_NOT_FOUND = "votee_not_found"
    SELF_VOTE = "self_vote"
    RATE_LIMITED = "rate_limited"
    INVALID_VOTE_VALUE = "invalid_vote_value"
    PRECONDITION_FAILED = "precondition_failed"
    DUPLICATE_NICKNAME = "duplicate_nickname"
    AUTH_FAILURE = "auth_failure"

    @property
    def family(self) -> ErrorFamily:
        return _FAMILIES[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_FAMILIES: dict[ErrorKind, ErrorFamily] = {
    ErrorKind.USER_NOT_FOUND: ErrorFamily.NOT_FOUND,
    ErrorKind.VOTER_NOT_FOUND: ErrorFamily.NOT_FOUND,
    ErrorKind.VOTEE_NOT_FOUND: ErrorFamily.NOT_FOUND,
    ErrorKind.SELF_VOTE: ErrorFamily.CONFLICT,
    ErrorKind.RATE_LIMITED: ErrorFamily.CONFLICT,
    ErrorKind.INVALID_VOTE_VALUE: ErrorFamily.CONFLICT,
    ErrorKind.PRECONDITION_FAILED: ErrorFamily.CONFLICT,
    ErrorKind.DUPLICATE_NICKNAME: ErrorFamily.CONFLICT,
    ErrorKind.AUTH_FAILURE: ErrorFamily.AUTH,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.USER_NOT_FOUND: "User not found",
    ErrorKind.VOTER_NOT_FOUND: "Voter not found or deleted.",
    ErrorKind.VOTEE_NOT_FOUND: "User to vote for not found or deleted.",
    ErrorKind.SELF_VOTE: "You cannot vote for yourself.",
    ErrorKind.RATE_LIMITED: "You can only vote once per hour.",
    ErrorKind.INVALID_VOTE_VALUE: (
        "Invalid vote value. Vote must be 1 (positive) or -1 (negative)."
    ),
    ErrorKind.PRECONDITION_FAILED: "Resource has been modified",
    ErrorKind.DUPLICATE_NICKNAME: "User with this nickname already exists",
    ErrorKind.AUTH_FAILURE: "Authentication failed",
}


class DomainError(Exception):
    """Raised by the service layer; ``kind`` identifies the failure."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"DomainError({self.kind.value!r}, {self.message!r})"
