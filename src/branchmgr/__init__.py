"""branchmgr public API."""

from __future__ import annotations

from branchmgr.approval import (
    ApprovalDecision,
    ApprovalGate,
    ApprovalRequest,
    PollingDecisionProvider,
    PreapprovedDecisionProvider,
    PromptDecisionProvider,
)
from branchmgr.audit import AuditLogger
from branchmgr.auth import AuthInfo, TokenClient
from branchmgr.backup import MirrorBackupManager
from branchmgr.config import GovernanceConfig
from branchmgr.engine import ExecutionEngine
from branchmgr.errors import (
    ApprovalDeniedOrTimedOutError,
    AuthError,
    BackupMissingError,
    BackupVerificationError,
    BranchMgrError,
    GitCommandError,
    InvalidInputError,
    InvalidStateError,
    MissingBranchError,
    ProtectedBranchError,
    RemoteRejectionError,
    RemoteUnavailableError,
)
from branchmgr.manager import BranchOperationManager
from branchmgr.models import (
    ApprovalRecord,
    AuditRecord,
    DeleteStrategy,
    MirrorHandle,
    OperationMode,
    OperationResult,
    OperationTarget,
    Outcome,
    ProtectionReason,
    RunResult,
    TargetState,
)
from branchmgr.plan import normalize_targets

__all__ = [
    # High-level
    "BranchOperationManager",
    "GovernanceConfig",
    "normalize_targets",
    # Components
    "ApprovalGate",
    "ApprovalRequest",
    "ApprovalDecision",
    "PreapprovedDecisionProvider",
    "PollingDecisionProvider",
    "PromptDecisionProvider",
    "AuditLogger",
    "MirrorBackupManager",
    "ExecutionEngine",
    # Auth
    "AuthInfo",
    "TokenClient",
    # Models
    "OperationTarget",
    "OperationMode",
    "DeleteStrategy",
    "TargetState",
    "Outcome",
    "ProtectionReason",
    "ApprovalRecord",
    "MirrorHandle",
    "AuditRecord",
    "OperationResult",
    "RunResult",
    # Errors
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
]
