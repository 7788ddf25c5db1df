"""Append-only CSV audit report."""

from __future__ import annotations

import csv
import io
import logging
import os
from pathlib import Path
from typing import Optional

from branchmgr.errors import InvalidStateError
from branchmgr.models import AUDIT_HEADER, AuditRecord, OperationTarget
from branchmgr.util.time import now_utc, to_rfc3339

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Durable, append-only audit report for one run.

    Notes:
        - open() writes the header before anything else happens in the run,
          so even an early abort leaves a header-only file.
        - append() writes exactly one physical line per record and fsyncs it
          before returning.
    """

    def __init__(self, path: Path, run_id: str) -> None:
        self.path = Path(path)
        self.run_id = run_id
        self._opened = False
        self._records: list[AuditRecord] = []

    @classmethod
    def for_run(cls, report_dir: Path, run_id: str) -> "AuditLogger":
        """Create a logger at the conventional path for run_id."""
        return cls(Path(report_dir) / f"branch-ops-{run_id}.csv", run_id)

    @property
    def records(self) -> list[AuditRecord]:
        """Records appended by this logger (copy)."""
        return list(self._records)

    def open(self) -> "AuditLogger":
        if self._opened:
            raise InvalidStateError("Audit report is already open", details={"path": str(self.path)})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_line(AUDIT_HEADER, mode="w")
        self._opened = True
        logger.info("Audit report: %s", self.path)
        return self

    def append(self, record: AuditRecord) -> None:
        if not self._opened:
            raise InvalidStateError("Audit report is not open. Call open() first.")
        self._write_line(_to_row(record), mode="a")
        self._records.append(record)

    def record(
        self,
        target: OperationTarget,
        action: str,
        status: str,
        *,
        approver: str = "",
        remote_status_code: Optional[int] = None,
        backup_path: Optional[str] = None,
    ) -> AuditRecord:
        """Build, append and return a record stamped with now and this run."""
        rec = AuditRecord(
            timestamp=now_utc(),
            run_id=self.run_id,
            approver=approver,
            repository=target.repository,
            branch=target.branch,
            action=action,
            status=status,
            remote_status_code=remote_status_code,
            backup_path=backup_path,
        )
        self.append(rec)
        return rec

    def _write_line(self, row: tuple[str, ...] | list[str], *, mode: str) -> None:
        buf = io.StringIO()
        csv.writer(buf, lineterminator="\n").writerow(row)
        with open(self.path, mode, encoding="utf-8", newline="") as f:
            f.write(buf.getvalue())
            f.flush()
            os.fsync(f.fileno())


def _to_row(record: AuditRecord) -> list[str]:
    return [
        to_rfc3339(record.timestamp),
        record.run_id,
        record.approver,
        record.repository,
        record.branch,
        record.action,
        record.status,
        "" if record.remote_status_code is None else str(record.remote_status_code),
        record.backup_path or "",
    ]


def read_report(path: Path) -> list[dict[str, str]]:
    """Read an audit report back as dict rows (header excluded)."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))
