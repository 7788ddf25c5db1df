"""REST endpoint templates for the hosting API (GitHub v3 shape)."""

from __future__ import annotations

from urllib.parse import quote

REPO_PATH: str = "/repos/{repository}"
REF_PATH: str = "/repos/{repository}/git/ref/heads/{branch}"
REFS_PATH: str = "/repos/{repository}/git/refs/heads/{branch}"


def repo_path(repository: str) -> str:
    return REPO_PATH.format(repository=quote(repository, safe="/"))


def ref_path(repository: str, branch: str) -> str:
    """Single-ref lookup path (GET)."""
    return REF_PATH.format(
        repository=quote(repository, safe="/"),
        branch=quote(branch, safe="/"),
    )


def refs_path(repository: str, branch: str) -> str:
    """Ref mutation path (DELETE)."""
    return REFS_PATH.format(
        repository=quote(repository, safe="/"),
        branch=quote(branch, safe="/"),
    )


def clone_url(git_url: str, repository: str) -> str:
    return f"{git_url.rstrip('/')}/{repository}.git"
