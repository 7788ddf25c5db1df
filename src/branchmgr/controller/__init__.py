"""Internal controller exports for branchmgr."""

from __future__ import annotations

from .git_controller import GitController
from .remote_controller import RemoteController

__all__ = ["GitController", "RemoteController"]
