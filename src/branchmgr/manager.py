"""BranchOperationManager: orchestrates validate -> approve -> back up -> execute."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol

from branchmgr.approval import ApprovalGate, DecisionProvider
from branchmgr.audit import AuditLogger
from branchmgr.auth import AuthInfo, TokenClient
from branchmgr.backup import MirrorBackupManager
from branchmgr.config import GovernanceConfig
from branchmgr.controller import GitController, RemoteController
from branchmgr.engine import ExecutionEngine
from branchmgr.errors import BackupVerificationError, BranchMgrError
from branchmgr.models import (
    ApprovalRecord,
    MirrorHandle,
    OperationMode,
    OperationTarget,
    Outcome,
    RunResult,
)
from branchmgr.plan import (
    ExistenceValidator,
    PreflightReport,
    ProtectionClassifier,
    normalize_targets,
    run_preflight,
)
from branchmgr.util.ids import new_run_id

logger = logging.getLogger(__name__)

VALIDATE_ACTION = OperationMode.VALIDATE.value
BACKUP_ACTION = OperationMode.BACKUP.value


class RemoteApi(Protocol):
    def get_default_branch(self, repository: str) -> str: ...

    def get_ref(self, repository: str, branch: str) -> Optional[dict[str, Any]]: ...

    def delete_ref(self, repository: str, branch: str) -> int: ...


class BranchOperationManager:
    """High-level manager for governed branch operations, one run at a time."""

    def __init__(
        self,
        config: GovernanceConfig,
        auth_info: AuthInfo,
        provider: DecisionProvider,
    ) -> None:
        self._config = config
        git = GitController(TokenClient(auth_info).git_auth_args())
        self._remote: RemoteApi = RemoteController(
            auth_info,
            api_url=config.api_url,
            timeout=config.timeout_sec,
        )
        self._mirrors = MirrorBackupManager(config, git)
        self._gate = ApprovalGate(config, provider)

    @classmethod
    def from_components(
        cls,
        config: GovernanceConfig,
        remote: RemoteApi,
        mirrors: MirrorBackupManager,
        gate: ApprovalGate,
    ) -> "BranchOperationManager":
        """Create manager with injected collaborators (useful for tests)."""
        obj = cls.__new__(cls)
        obj._config = config
        obj._remote = remote
        obj._mirrors = mirrors
        obj._gate = gate
        return obj

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    def close(self) -> None:
        close = getattr(self._remote, "close", None)
        if callable(close):
            close()

    def run(
        self,
        text: str,
        mode: OperationMode,
        *,
        cancel_event: Optional[threading.Event] = None,
        run_id: Optional[str] = None,
        raise_on_failure: bool = True,
    ) -> RunResult:
        """
        Run one governed operation over the targets listed in `text`.

        Policy:
            - The audit header is written before anything else.
            - Validation errors are aggregated and raised before approval.
            - Mutating modes require an ApprovalRecord before any backup or
              remote mutation.
            - Backups for every repository finish before the first delete.
            - The first execution failure halts the run; its error is raised
              (or returned in RunResult.error when raise_on_failure is False).
        """
        run_id = run_id or new_run_id()
        audit = AuditLogger.for_run(self._config.report_dir, run_id).open()
        logger.info("Run %s: mode=%s", run_id, mode.value)

        try:
            targets = self._normalize(text)
            report = self._preflight(targets, mode)
            if not report.ok:
                _record_violations(audit, report)
                report.raise_for_violations()

            approval: Optional[ApprovalRecord] = None
            if mode.is_mutating:
                approval = self._gate.request(run_id, mode, targets, cancel_event=cancel_event)
            approver = approval.approver if approval else ""

            backups: dict[str, MirrorHandle] = {}
            if _needs_backup(mode, approval):
                backups = self._back_up(targets, audit, approver)
        except BranchMgrError as exc:
            exc.details.setdefault("run_id", run_id)
            exc.details.setdefault("audit_path", str(audit.path))
            raise

        engine = ExecutionEngine(self._remote, self._mirrors, audit)
        execution = engine.execute(mode, targets, approver=approver, backups=backups)

        result = RunResult(
            run_id=run_id,
            mode=mode,
            status="success" if execution.ok else "failed",
            results=execution.results,
            stopped_target=execution.stopped_target,
            approval=approval,
            audit_path=audit.path,
            summary=execution.summary,
            error=execution.error,
        )
        logger.info("Run %s finished: %s %s", run_id, result.status, result.summary)

        if execution.error is not None:
            execution.error.details.setdefault("run_id", run_id)
            execution.error.details.setdefault("audit_path", str(audit.path))
            if raise_on_failure:
                raise execution.error
        return result

    # ----------------------------
    # Internals
    # ----------------------------
    def _normalize(self, text: str) -> list[OperationTarget]:
        targets: list[OperationTarget] = []
        seen: set[OperationTarget] = set()
        for target in normalize_targets(text):
            qualified = OperationTarget(
                repository=self._config.qualify(target.repository),
                branch=target.branch,
            )
            if qualified in seen:
                continue
            seen.add(qualified)
            targets.append(qualified)
        return targets

    def _preflight(self, targets: list[OperationTarget], mode: OperationMode) -> PreflightReport:
        classifier = ProtectionClassifier(self._config, self._remote.get_default_branch)
        validator = ExistenceValidator(self._remote.get_ref)
        return run_preflight(
            targets,
            classifier,
            validator,
            require_existence=mode is not OperationMode.BACKOUT,
        )

    def _back_up(
        self,
        targets: list[OperationTarget],
        audit: AuditLogger,
        approver: str,
    ) -> dict[str, MirrorHandle]:
        backups: dict[str, MirrorHandle] = {}
        for target in targets:
            repository = target.repository
            if repository in backups:
                continue
            try:
                backups[repository] = self._mirrors.ensure_backup(repository)
            except BackupVerificationError:
                for t in targets:
                    if t.repository == repository:
                        audit.record(t, BACKUP_ACTION, Outcome.BACKUP_FAILED.value, approver=approver)
                raise
        return backups


def _needs_backup(mode: OperationMode, approval: Optional[ApprovalRecord]) -> bool:
    if mode is OperationMode.BACKUP:
        return True
    if mode is OperationMode.DELETE:
        return approval is not None and approval.backup_required
    return False


def _record_violations(audit: AuditLogger, report: PreflightReport) -> None:
    for verdict in report.protected:
        audit.record(verdict.target, VALIDATE_ACTION, Outcome.PROTECTED.value)
    for target in report.missing:
        audit.record(target, VALIDATE_ACTION, Outcome.MISSING.value)
