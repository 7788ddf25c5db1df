"""Existence validation against the remote (fail-closed on ambiguity)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

from branchmgr.errors import BranchMgrError
from branchmgr.models import ExistenceVerdict, OperationTarget

logger = logging.getLogger(__name__)

RefLookup = Callable[[str, str], Optional[dict[str, Any]]]


class ExistenceValidator:
    """
    Confirm each target ref exists on the remote.

    `ref_lookup(repository, branch)` returns the ref object when it exists,
    None on 404, and raises a branchmgr error for any other answer.
    """

    def __init__(self, ref_lookup: RefLookup) -> None:
        self._lookup = ref_lookup

    def check(self, target: OperationTarget) -> ExistenceVerdict:
        ref = self._lookup(target.repository, target.branch)
        if ref is None:
            return ExistenceVerdict(target=target, exists=False, status_code=404)
        return ExistenceVerdict(target=target, exists=True, status_code=200)

    def check_all(
        self,
        targets: Sequence[OperationTarget],
    ) -> tuple[list[ExistenceVerdict], dict[OperationTarget, BranchMgrError]]:
        """
        Check every target; never stops at the first problem.

        Returns:
            (verdicts, ambiguous) where ambiguous maps targets whose lookup
            failed with a non-404 answer to the error. Those targets get no
            verdict; callers must treat them as fatal.
        """
        verdicts: list[ExistenceVerdict] = []
        ambiguous: dict[OperationTarget, BranchMgrError] = {}

        for target in targets:
            try:
                verdict = self.check(target)
            except BranchMgrError as exc:
                logger.warning("Existence check failed for %s: %s", target.key, exc)
                ambiguous[target] = exc
                continue
            if not verdict.exists:
                logger.warning("Target not found on remote: %s", target.key)
            verdicts.append(verdict)

        return verdicts, ambiguous
