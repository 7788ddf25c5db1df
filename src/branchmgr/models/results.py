"""Result models for a governed run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional

from .approval import ApprovalRecord
from .modes import OperationMode, Outcome, TargetState
from .target import OperationTarget

RunStatus = Literal["success", "failed"]


@dataclass(slots=True)
class OperationResult:
    """Result for a single target."""

    target: OperationTarget
    action: str
    state: TargetState
    outcome: Optional[Outcome] = None

    remote_status_code: Optional[int] = None
    backup_path: Optional[str] = None

    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[dict[str, Any]] = None


@dataclass(slots=True)
class RunResult:
    """Aggregate result for one run."""

    run_id: str
    mode: OperationMode
    status: RunStatus
    results: list[OperationResult]

    stopped_target: Optional[OperationTarget] = None
    approval: Optional[ApprovalRecord] = None
    audit_path: Optional[Path] = None
    summary: dict[str, int] = field(default_factory=dict)
    error: Optional[Exception] = None

    def raise_for_status(self) -> None:
        """Re-raise the halting error of a failed run."""
        if self.error is not None:
            raise self.error
