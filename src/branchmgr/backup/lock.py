"""Per-repository exclusive lock for mirror directories."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


def lock_path_for(mirror: Path) -> Path:
    return mirror.with_name(mirror.name + ".lock")


@contextmanager
def mirror_lock(mirror: Path) -> Iterator[Path]:
    """
    Hold an exclusive lock on `<mirror>.lock` for the duration of the block.

    Blocks until the lock is available; released on every exit path.
    """
    path = lock_path_for(mirror)
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = open(path, "a+", encoding="utf-8")
    try:
        _acquire(handle)
        try:
            yield path
        finally:
            _release(handle)
    finally:
        handle.close()


def _acquire(handle) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)


def _release(handle) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
