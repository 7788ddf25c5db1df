"""Run modes, sub-modes, per-target states and outcomes."""

from __future__ import annotations

from enum import Enum


class OperationMode(str, Enum):
    """Exactly one mode is active per run."""

    VALIDATE = "VALIDATE"
    BACKUP = "BACKUP"
    DELETE = "DELETE"
    BACKOUT = "BACKOUT"

    @property
    def is_mutating(self) -> bool:
        return self in (OperationMode.DELETE, OperationMode.BACKOUT)

    @classmethod
    def parse(cls, value: str) -> "OperationMode":
        """Parse a mode name case-insensitively. Raises ValueError."""
        if not isinstance(value, str):
            raise ValueError("mode must be a string")
        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(m.value.lower() for m in cls)
            raise ValueError(f"Unknown mode: {value!r} (expected one of {allowed})") from None

    @classmethod
    def from_flags(
        cls,
        *,
        dry_run: bool,
        enable_delete: bool,
        enable_backout: bool,
    ) -> "OperationMode":
        """
        Resolve the boolean-flag form of the mode selector.

        Rules:
            - enable_delete and enable_backout are mutually exclusive.
            - dry_run selects VALIDATE.
            - when not a dry run, one of enable_delete/enable_backout is required.

        Raises:
            ValueError: on an invalid flag combination.
        """
        if enable_delete and enable_backout:
            raise ValueError("enable_delete and enable_backout are mutually exclusive")
        if dry_run:
            return cls.VALIDATE
        if enable_delete:
            return cls.DELETE
        if enable_backout:
            return cls.BACKOUT
        raise ValueError("One of enable_delete/enable_backout is required unless dry_run")


class DeleteStrategy(str, Enum):
    """Sub-mode chosen by the approver for DELETE runs."""

    BACKUP_AND_DELETE = "BACKUP_AND_DELETE"
    DIRECT_DELETE = "DIRECT_DELETE"


class TargetState(str, Enum):
    """Execution state of one target within a run."""

    PENDING = "PENDING"
    EXECUTING = "EXECUTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class Outcome(str, Enum):
    """Audit status values."""

    # success
    DELETED = "DELETED"
    RESTORED = "RESTORED"
    BACKED_UP = "BACKED_UP"
    ELIGIBLE = "ELIGIBLE"

    # execution failures
    NOT_FOUND = "NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    REJECTED_BY_REMOTE = "REJECTED_BY_REMOTE"
    UNEXPECTED_REMOTE_ERROR = "UNEXPECTED_REMOTE_ERROR"
    BACKUP_MISSING = "BACKUP_MISSING"
    BACKUP_FAILED = "BACKUP_FAILED"
    PUSH_REJECTED = "PUSH_REJECTED"

    # preflight violations
    PROTECTED = "PROTECTED"
    MISSING = "MISSING"

    @property
    def is_success(self) -> bool:
        return self in _SUCCESS_OUTCOMES


_SUCCESS_OUTCOMES = frozenset(
    {Outcome.DELETED, Outcome.RESTORED, Outcome.BACKED_UP, Outcome.ELIGIBLE}
)
