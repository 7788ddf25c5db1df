"""Public backup exports for branchmgr."""

from __future__ import annotations

from .lock import mirror_lock
from .mirror_manager import SYNC_MARKER, MirrorBackupManager

__all__ = ["MirrorBackupManager", "SYNC_MARKER", "mirror_lock"]
