"""Approval record produced by the approval gate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .modes import DeleteStrategy, OperationMode
from .target import OperationTarget


@dataclass(slots=True, frozen=True)
class ApprovalRecord:
    """
    Who approved which targets in which mode.

    Created once per run right before any mutating stage and consumed
    read-only by the execution engine and the audit logger.
    """

    approver: str
    mode: OperationMode
    timestamp: datetime
    targets_approved: tuple[OperationTarget, ...]
    sub_mode: Optional[DeleteStrategy] = None

    @property
    def backup_required(self) -> bool:
        """True unless the approver chose a direct delete."""
        return self.sub_mode is not DeleteStrategy.DIRECT_DELETE
