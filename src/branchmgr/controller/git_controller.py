"""git subprocess controller for mirror clone/update/push (internal use only)."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Sequence

from branchmgr.errors import GitCommandError

logger = logging.getLogger(__name__)


class GitController:
    """
    Thin wrapper over the git CLI.

    Args:
        auth_args: `-c` arguments that authenticate transport (see TokenClient).
        git_binary: git executable.
    """

    def __init__(self, auth_args: Sequence[str] = (), *, git_binary: str = "git") -> None:
        self._auth_args = list(auth_args)
        self._git = git_binary

    def clone_mirror(self, url: str, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        self._run([*self._auth_args, "clone", "--mirror", url, str(dest)])

    def remote_update(self, mirror: Path) -> None:
        self._run([*self._auth_args, "-C", str(mirror), "remote", "update", "--prune"])

    def has_ref(self, mirror: Path, branch: str) -> bool:
        cp = self._run(
            ["-C", str(mirror), "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"],
            check=False,
        )
        return cp.returncode == 0

    def push_ref(self, mirror: Path, url: str, branch: str) -> None:
        """Non-force push of one branch ref from the mirror to url."""
        refspec = f"refs/heads/{branch}:refs/heads/{branch}"
        self._run([*self._auth_args, "-C", str(mirror), "push", url, refspec])

    def _run(
        self,
        args: list[str],
        *,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        argv = [self._git, *args]
        printable = _redact(argv)
        logger.debug("git: %s", " ".join(printable))

        env = os.environ.copy()
        env.setdefault("GIT_TERMINAL_PROMPT", "0")
        try:
            cp = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                text=True,
                env=env,
            )
        except OSError as exc:
            raise GitCommandError(
                "Unable to run git",
                details={"argv": printable},
                cause=exc,
            ) from exc

        if check and cp.returncode != 0:
            raise GitCommandError(
                f"git exited with status {cp.returncode}",
                details={
                    "argv": printable,
                    "returncode": cp.returncode,
                    "stderr": cp.stderr.strip(),
                },
            )
        return cp


def _redact(argv: Sequence[str]) -> list[str]:
    out: list[str] = []
    for arg in argv:
        if arg.lower().startswith("http.extraheader="):
            out.append("http.extraHeader=***")
        else:
            out.append(arg)
    return out
