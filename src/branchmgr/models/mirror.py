"""Local mirror handle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class MirrorHandle:
    """
    A bare mirror clone of one repository on local storage.

    Notes:
        - One handle per repository, not per branch.
        - Persists across runs; never deleted by branchmgr.
    """

    repository: str
    local_path: Path
    last_synced_at: Optional[datetime] = None
