"""Approval gate: the human authorization checkpoint before mutation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from branchmgr.config import GovernanceConfig
from branchmgr.errors import ApprovalDeniedOrTimedOutError, InvalidStateError
from branchmgr.models import (
    ApprovalRecord,
    DeleteStrategy,
    OperationMode,
    OperationTarget,
)
from branchmgr.util.time import now_utc

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ApprovalRequest:
    """What the approver is shown."""

    run_id: str
    mode: OperationMode
    targets: tuple[OperationTarget, ...]

    @property
    def sub_modes(self) -> tuple[DeleteStrategy, ...]:
        if self.mode is OperationMode.DELETE:
            return (DeleteStrategy.BACKUP_AND_DELETE, DeleteStrategy.DIRECT_DELETE)
        return ()


@dataclass(slots=True, frozen=True)
class ApprovalDecision:
    """A provider's answer. `approver` is the authenticated identity."""

    approved: bool
    approver: str = ""
    sub_mode: Optional[DeleteStrategy] = None
    reason: Optional[str] = None


class DecisionProvider(Protocol):
    """
    Blocking source of approval decisions (external collaborator).

    Implementations wait for a human and must return promptly once
    cancel_event is set. They may raise TimeoutError.
    """

    def decide(
        self,
        request: ApprovalRequest,
        cancel_event: threading.Event,
    ) -> ApprovalDecision: ...


class ApprovalGate:
    """
    Block until an authorized approver decides, then emit an ApprovalRecord.

    Rejection, timeout, cancellation and unauthorized identities all raise
    ApprovalDeniedOrTimedOutError. Approvals are never cached: every call asks
    the provider again.
    """

    def __init__(self, config: GovernanceConfig, provider: DecisionProvider) -> None:
        self._config = config
        self._provider = provider

    def request(
        self,
        run_id: str,
        mode: OperationMode,
        targets: Sequence[OperationTarget],
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> ApprovalRecord:
        if not mode.is_mutating:
            raise InvalidStateError(
                "Approval is only requested for mutating modes",
                details={"mode": mode.value},
            )
        if not targets:
            raise InvalidStateError("Approval requested with no targets")

        cancel = cancel_event if cancel_event is not None else threading.Event()
        req = ApprovalRequest(run_id=run_id, mode=mode, targets=tuple(targets))
        details = {"run_id": run_id, "mode": mode.value}

        if cancel.is_set():
            raise ApprovalDeniedOrTimedOutError("Run cancelled before approval", details=details)

        logger.info("Awaiting approval: %s for %d targets", mode.value, len(req.targets))
        try:
            decision = self._provider.decide(req, cancel)
        except TimeoutError as exc:
            raise ApprovalDeniedOrTimedOutError(
                "Approval timed out",
                details=details,
                cause=exc,
            ) from exc

        if cancel.is_set():
            raise ApprovalDeniedOrTimedOutError("Run cancelled during approval", details=details)

        if not decision.approved:
            raise ApprovalDeniedOrTimedOutError(
                "Approval rejected" + (f": {decision.reason}" if decision.reason else ""),
                details={**details, "approver": decision.approver},
            )

        approver = (decision.approver or "").strip()
        if not self._config.is_approver(approver):
            raise ApprovalDeniedOrTimedOutError(
                "Approver is not in the configured approver set",
                details={**details, "approver": approver},
            )

        sub_mode: Optional[DeleteStrategy] = None
        if mode is OperationMode.DELETE:
            sub_mode = decision.sub_mode or DeleteStrategy.BACKUP_AND_DELETE

        record = ApprovalRecord(
            approver=approver,
            mode=mode,
            timestamp=now_utc(),
            targets_approved=req.targets,
            sub_mode=sub_mode,
        )
        logger.info(
            "Approved by %s (%s%s)",
            approver,
            mode.value,
            f", {sub_mode.value}" if sub_mode else "",
        )
        return record
