"""Public model exports for branchmgr."""

from __future__ import annotations

from .approval import ApprovalRecord
from .audit import AUDIT_HEADER, AuditRecord
from .mirror import MirrorHandle
from .modes import DeleteStrategy, OperationMode, Outcome, TargetState
from .results import OperationResult, RunResult, RunStatus
from .target import OperationTarget
from .verdicts import ExistenceVerdict, ProtectionReason, ProtectionVerdict

__all__ = [
    "OperationTarget",
    "OperationMode",
    "DeleteStrategy",
    "TargetState",
    "Outcome",
    "ProtectionReason",
    "ProtectionVerdict",
    "ExistenceVerdict",
    "ApprovalRecord",
    "MirrorHandle",
    "AUDIT_HEADER",
    "AuditRecord",
    "OperationResult",
    "RunResult",
    "RunStatus",
]
