"""Audit record model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

AUDIT_HEADER: tuple[str, ...] = (
    "Timestamp",
    "RunId",
    "ApprovedBy",
    "Repo",
    "Branch",
    "Action",
    "Status",
    "RemoteStatusCode",
    "BackupPath",
)


@dataclass(slots=True, frozen=True)
class AuditRecord:
    """One immutable line of the audit report."""

    timestamp: datetime
    run_id: str
    approver: str
    repository: str
    branch: str
    action: str
    status: str
    remote_status_code: Optional[int] = None
    backup_path: Optional[str] = None
