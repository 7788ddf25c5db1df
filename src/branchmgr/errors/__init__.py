"""Public error exports for branchmgr."""

from __future__ import annotations

from .exceptions import (
    ApprovalDeniedOrTimedOutError,
    AuthError,
    BackupMissingError,
    BackupVerificationError,
    BranchMgrError,
    GitCommandError,
    HttpErrorInfo,
    InvalidInputError,
    InvalidStateError,
    MissingBranchError,
    ProtectedBranchError,
    RemoteRejectionError,
    RemoteUnavailableError,
    map_http_error,
)

__all__ = [
    "BranchMgrError",
    "InvalidInputError",
    "InvalidStateError",
    "AuthError",
    "ProtectedBranchError",
    "MissingBranchError",
    "RemoteUnavailableError",
    "ApprovalDeniedOrTimedOutError",
    "BackupVerificationError",
    "BackupMissingError",
    "RemoteRejectionError",
    "GitCommandError",
    "HttpErrorInfo",
    "map_http_error",
]
