"""Execution engine: one action per target, strictly sequential, halt on first failure."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence

from branchmgr.audit import AuditLogger
from branchmgr.backup import MirrorBackupManager
from branchmgr.errors import (
    BackupMissingError,
    BranchMgrError,
    RemoteRejectionError,
    RemoteUnavailableError,
)
from branchmgr.models import (
    MirrorHandle,
    OperationMode,
    OperationResult,
    OperationTarget,
    Outcome,
    TargetState,
)

from .outcomes import delete_outcome

logger = logging.getLogger(__name__)


class RefDeleter(Protocol):
    def delete_ref(self, repository: str, branch: str) -> int: ...


@dataclass(slots=True)
class ExecutionReport:
    """What happened to each target. `error` is set when the run halted."""

    results: list[OperationResult]
    stopped_target: Optional[OperationTarget] = None
    error: Optional[BranchMgrError] = None
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class _Step:
    outcome: Outcome
    remote_status_code: Optional[int] = None
    backup_path: Optional[str] = None
    error: Optional[BranchMgrError] = None


class ExecutionEngine:
    """
    Perform exactly one action per target for the run's mode.

    Policy:
        - Targets run in order, one at a time: PENDING -> EXECUTING ->
          SUCCEEDED | FAILED.
        - Every attempted target gets exactly one audit row, written before
          the next target starts.
        - The first failure halts the run; later targets stay PENDING and
          are never attempted. There are no retries.
    """

    def __init__(
        self,
        remote: RefDeleter,
        mirrors: MirrorBackupManager,
        audit: AuditLogger,
    ) -> None:
        self._remote = remote
        self._mirrors = mirrors
        self._audit = audit

    def execute(
        self,
        mode: OperationMode,
        targets: Sequence[OperationTarget],
        *,
        approver: str = "",
        backups: Optional[Mapping[str, MirrorHandle]] = None,
    ) -> ExecutionReport:
        mirrors = dict(backups or {})
        results = [
            OperationResult(target=t, action=mode.value, state=TargetState.PENDING)
            for t in targets
        ]
        report = ExecutionReport(results=results)

        for result in results:
            result.state = TargetState.EXECUTING
            step = self._run_one(mode, result.target, mirrors)

            result.outcome = step.outcome
            result.remote_status_code = step.remote_status_code
            result.backup_path = step.backup_path

            self._audit.record(
                result.target,
                mode.value,
                step.outcome.value,
                approver=approver,
                remote_status_code=step.remote_status_code,
                backup_path=step.backup_path,
            )

            if step.error is None:
                result.state = TargetState.SUCCEEDED
                logger.info("%s %s: %s", mode.value, result.target.key, step.outcome.value)
                continue

            result.state = TargetState.FAILED
            result.error_type = step.error.__class__.__name__
            result.error_message = str(step.error)
            result.error_details = dict(step.error.details)
            report.stopped_target = result.target
            report.error = step.error
            logger.warning(
                "%s %s failed (%s); halting run",
                mode.value,
                result.target.key,
                step.outcome.value,
            )
            break

        report.summary = _summarize(results)
        return report

    # ----------------------------
    # Internals
    # ----------------------------
    def _run_one(
        self,
        mode: OperationMode,
        target: OperationTarget,
        mirrors: dict[str, MirrorHandle],
    ) -> _Step:
        if mode is OperationMode.DELETE:
            return self._delete(target, mirrors.get(target.repository))
        if mode is OperationMode.BACKOUT:
            return self._backout(target, mirrors)
        if mode is OperationMode.BACKUP:
            handle = mirrors.get(target.repository)
            if handle is None:
                return _Step(
                    outcome=Outcome.BACKUP_MISSING,
                    error=BackupMissingError(
                        "No mirror was synced for this repository",
                        details={"target": target.key},
                    ),
                )
            return _Step(outcome=Outcome.BACKED_UP, backup_path=str(handle.local_path))
        return _Step(outcome=Outcome.ELIGIBLE)

    def _delete(self, target: OperationTarget, handle: Optional[MirrorHandle]) -> _Step:
        backup_path = str(handle.local_path) if handle else None
        try:
            status = self._remote.delete_ref(target.repository, target.branch)
        except RemoteUnavailableError as exc:
            return _Step(
                outcome=Outcome.UNEXPECTED_REMOTE_ERROR,
                backup_path=backup_path,
                error=RemoteRejectionError(
                    "Delete request did not complete",
                    code=None,
                    outcome=Outcome.UNEXPECTED_REMOTE_ERROR.value,
                    details={"target": target.key},
                    cause=exc,
                ),
            )

        outcome = delete_outcome(status)
        if outcome is Outcome.DELETED:
            return _Step(outcome=outcome, remote_status_code=status, backup_path=backup_path)

        return _Step(
            outcome=outcome,
            remote_status_code=status,
            backup_path=backup_path,
            error=RemoteRejectionError(
                f"Delete rejected by remote: HTTP {status} ({outcome.value})",
                code=status,
                outcome=outcome.value,
                details={"target": target.key},
            ),
        )

    def _backout(self, target: OperationTarget, mirrors: dict[str, MirrorHandle]) -> _Step:
        handle = mirrors.get(target.repository)
        if handle is None:
            try:
                handle = self._mirrors.open_existing(target.repository)
            except (BranchMgrError, OSError) as exc:
                return _mirror_unreadable(target, None, exc)
            if handle is not None:
                mirrors[target.repository] = handle

        if handle is None:
            return _Step(
                outcome=Outcome.BACKUP_MISSING,
                error=BackupMissingError(
                    "No mirror exists for this repository",
                    details={"target": target.key, "repository": target.repository},
                ),
            )

        backup_path = str(handle.local_path)
        try:
            present = self._mirrors.has_ref(handle, target.branch)
        except (BranchMgrError, OSError) as exc:
            return _mirror_unreadable(target, backup_path, exc)
        if not present:
            return _Step(
                outcome=Outcome.BACKUP_MISSING,
                backup_path=backup_path,
                error=BackupMissingError(
                    "Mirror does not contain the branch ref",
                    details={"target": target.key, "mirror": backup_path},
                ),
            )

        try:
            self._mirrors.restore(handle, target.branch)
        except RemoteRejectionError as exc:
            exc.details.setdefault("target", target.key)
            return _Step(
                outcome=Outcome.PUSH_REJECTED,
                backup_path=backup_path,
                error=exc,
            )
        except (BranchMgrError, OSError) as exc:
            return _Step(
                outcome=Outcome.PUSH_REJECTED,
                backup_path=backup_path,
                error=RemoteRejectionError(
                    "Restore push could not be performed",
                    code=None,
                    outcome=Outcome.PUSH_REJECTED.value,
                    details={"target": target.key, "error_type": exc.__class__.__name__},
                    cause=exc,
                ),
            )
        return _Step(outcome=Outcome.RESTORED, backup_path=backup_path)


def _mirror_unreadable(target: OperationTarget, backup_path: Optional[str], exc: Exception) -> _Step:
    details = {"target": target.key, "error_type": exc.__class__.__name__}
    if backup_path:
        details["mirror"] = backup_path
    return _Step(
        outcome=Outcome.BACKUP_MISSING,
        backup_path=backup_path,
        error=BackupMissingError(
            "Mirror could not be read",
            details=details,
            cause=exc,
        ),
    )


def _summarize(results: list[OperationResult]) -> dict[str, int]:
    summary: dict[str, int] = {state.value.lower(): 0 for state in TargetState}
    for r in results:
        summary[r.state.value.lower()] += 1
    return summary
