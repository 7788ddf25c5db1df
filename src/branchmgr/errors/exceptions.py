"""Exception hierarchy and HTTP error mapping for branchmgr."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


class BranchMgrError(Exception):
    """
    Base exception for branchmgr.

    Attributes:
        details: Optional structured information (e.g., HTTP status, targets).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidInputError(BranchMgrError):
    """Raised when the target list or run options are empty or malformed."""


class InvalidStateError(BranchMgrError):
    """Raised when the library is used in an invalid state (e.g., audit not opened)."""


class AuthError(BranchMgrError):
    """Raised when the access token is missing or rejected (HTTP 401)."""


class ProtectedBranchError(BranchMgrError):
    """Raised when one or more targets are protected. Never overridable."""

    def __init__(
        self,
        violations: Sequence[str],
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.violations = list(violations)
        merged = {"violations": list(self.violations)}
        if details:
            merged.update(details)
        super().__init__(
            "Protected branches cannot be modified: " + ", ".join(self.violations),
            details=merged,
            cause=cause,
        )


class MissingBranchError(BranchMgrError):
    """Raised when one or more targets do not exist on the remote."""

    def __init__(
        self,
        missing: Sequence[str],
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.missing = list(missing)
        merged = {"missing": list(self.missing)}
        if details:
            merged.update(details)
        super().__init__(
            "Branches not found on remote: " + ", ".join(self.missing),
            details=merged,
            cause=cause,
        )


class RemoteUnavailableError(BranchMgrError):
    """Raised when a validation-time remote answer is neither success nor 404."""


class ApprovalDeniedOrTimedOutError(BranchMgrError):
    """Raised when approval is rejected, times out, is cancelled or unauthorized."""


class BackupVerificationError(BranchMgrError):
    """Raised when the local mirror is absent or empty after clone/update."""


class BackupMissingError(BranchMgrError):
    """Raised when a restore is requested but the mirror lacks the branch ref."""


class RemoteRejectionError(BranchMgrError):
    """
    Raised when the remote rejects a delete or restore push.

    Attributes:
        code: HTTP status code (delete) or git exit code (push), if known.
        outcome: Outcome label recorded in the audit row.
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        outcome: str = "UNEXPECTED_REMOTE_ERROR",
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        merged: dict[str, Any] = {"code": code, "outcome": outcome}
        if details:
            merged.update(details)
        super().__init__(message, details=merged, cause=cause)
        self.code = code
        self.outcome = outcome


class GitCommandError(BranchMgrError):
    """Raised when a git subprocess exits non-zero or cannot be started."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to branchmgr exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> BranchMgrError:
    """
    Map a validation-time HTTP error to a branchmgr exception.

    Policy:
        - 401 -> AuthError
        - anything else -> RemoteUnavailableError (fail closed; never retried)

    404 is not an error at validation time; callers handle it before mapping.
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    return RemoteUnavailableError(message, details=details, cause=cause)
