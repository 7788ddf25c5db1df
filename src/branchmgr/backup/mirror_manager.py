"""Mirror backup manager: local bare mirrors used as the restore source."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from branchmgr.config import GovernanceConfig
from branchmgr.controller.endpoints import clone_url
from branchmgr.errors import (
    BackupVerificationError,
    GitCommandError,
    InvalidInputError,
    RemoteRejectionError,
)
from branchmgr.models import MirrorHandle, Outcome
from branchmgr.util.time import now_utc, parse_rfc3339, to_rfc3339

from .lock import mirror_lock

logger = logging.getLogger(__name__)

SYNC_MARKER: str = "branchmgr-sync.json"

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class GitTransport(Protocol):
    def clone_mirror(self, url: str, dest: Path) -> None: ...

    def remote_update(self, mirror: Path) -> None: ...

    def has_ref(self, mirror: Path, branch: str) -> bool: ...

    def push_ref(self, mirror: Path, url: str, branch: str) -> None: ...


class MirrorBackupManager:
    """
    Maintain one bare mirror per repository under config.mirror_root.

    Notes:
        - Mirrors are never deleted by branchmgr.
        - Every clone/update/push holds the repository's exclusive lock.
    """

    def __init__(self, config: GovernanceConfig, git: GitTransport) -> None:
        self._config = config
        self._git = git

    def mirror_path(self, repository: str) -> Path:
        """Deterministic local path: `<mirror_root>/<owner>/<repo>.git`."""
        parts = [p for p in repository.strip("/").split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise InvalidInputError(
                "Invalid repository identifier",
                details={"repository": repository},
            )
        safe = [_UNSAFE.sub("_", p) for p in parts]
        safe[-1] = safe[-1] + ".git"
        return Path(self._config.mirror_root).joinpath(*safe)

    def remote_url(self, repository: str) -> str:
        return clone_url(self._config.git_url, repository)

    def ensure_backup(self, repository: str) -> MirrorHandle:
        """
        Clone (first time) or update (afterwards) the repository's mirror.

        Raises:
            BackupVerificationError: if git fails or the mirror is absent or
                empty afterwards.
        """
        path = self.mirror_path(repository)
        url = self.remote_url(repository)

        with mirror_lock(path):
            try:
                if _is_mirror(path):
                    logger.info("Updating mirror %s", path)
                    self._git.remote_update(path)
                elif _is_empty_or_absent(path):
                    logger.info("Cloning mirror of %s into %s", repository, path)
                    self._git.clone_mirror(url, path)
                else:
                    raise BackupVerificationError(
                        "Mirror path exists but is not a git mirror",
                        details={"repository": repository, "path": str(path)},
                    )
            except GitCommandError as exc:
                raise BackupVerificationError(
                    "Mirror clone/update failed",
                    details={"repository": repository, "path": str(path), **exc.details},
                    cause=exc,
                ) from exc

            if _is_empty_or_absent(path):
                raise BackupVerificationError(
                    "Mirror directory is absent or empty after sync",
                    details={"repository": repository, "path": str(path)},
                )

            handle = MirrorHandle(repository=repository, local_path=path, last_synced_at=now_utc())
            _write_marker(handle)

        logger.info("Backup verified: %s -> %s", repository, path)
        return handle

    def open_existing(self, repository: str) -> Optional[MirrorHandle]:
        """
        Return the handle of a previously synced mirror, or None.

        Does not fetch: the mirror's last known state is what restores use.
        """
        path = self.mirror_path(repository)
        if _is_empty_or_absent(path):
            return None
        synced_at = _read_marker(path)
        if synced_at is None:
            return None
        return MirrorHandle(repository=repository, local_path=path, last_synced_at=synced_at)

    def has_ref(self, handle: MirrorHandle, branch: str) -> bool:
        with mirror_lock(handle.local_path):
            return self._git.has_ref(handle.local_path, branch)

    def restore(self, handle: MirrorHandle, branch: str) -> None:
        """
        Non-force push of `refs/heads/<branch>` from the mirror to the remote.

        Raises:
            RemoteRejectionError: if the push fails.
        """
        url = self.remote_url(handle.repository)
        with mirror_lock(handle.local_path):
            try:
                self._git.push_ref(handle.local_path, url, branch)
            except GitCommandError as exc:
                code = exc.details.get("returncode")
                raise RemoteRejectionError(
                    "Restore push was rejected",
                    code=code if isinstance(code, int) else None,
                    outcome=Outcome.PUSH_REJECTED.value,
                    details={"repository": handle.repository, "branch": branch},
                    cause=exc,
                ) from exc


def _is_empty_or_absent(path: Path) -> bool:
    if not path.is_dir():
        return True
    return not any(path.iterdir())


def _is_mirror(path: Path) -> bool:
    return path.is_dir() and (path / "HEAD").is_file()


def _write_marker(handle: MirrorHandle) -> None:
    payload = {
        "repository": handle.repository,
        "last_synced_at": to_rfc3339(handle.last_synced_at) if handle.last_synced_at else None,
    }
    with open(handle.local_path / SYNC_MARKER, "w", encoding="utf-8") as f:
        json.dump(payload, f)


def _read_marker(path: Path):
    marker = path / SYNC_MARKER
    if not marker.is_file():
        return None
    try:
        with open(marker, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return parse_rfc3339(payload["last_synced_at"])
    except (OSError, ValueError, KeyError, TypeError):
        return None
