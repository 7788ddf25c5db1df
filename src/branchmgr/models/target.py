"""Operation target model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class OperationTarget:
    """
    A single repository/branch pair to operate on.

    Identity is the (repository, branch) pair; instances are immutable so they
    can be used as dict keys and set members.
    """

    repository: str
    branch: str

    def __post_init__(self) -> None:
        if not isinstance(self.repository, str) or not self.repository.strip():
            raise ValueError("OperationTarget.repository must be a non-empty string")
        if not isinstance(self.branch, str) or not self.branch.strip():
            raise ValueError("OperationTarget.branch must be a non-empty string")

    @property
    def key(self) -> str:
        """Render as `repository:branch`."""
        return f"{self.repository}:{self.branch}"

    @property
    def ref(self) -> str:
        """Remote ref name relative to `refs/` (e.g. `heads/feature/x`)."""
        return f"heads/{self.branch}"

    def __str__(self) -> str:
        return self.key
