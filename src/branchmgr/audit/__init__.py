"""Public audit exports for branchmgr."""

from __future__ import annotations

from .logger import AuditLogger, read_report

__all__ = ["AuditLogger", "read_report"]
