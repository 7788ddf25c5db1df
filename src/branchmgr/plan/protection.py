"""Protection classification: static name/prefix rules + remote default branch."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from branchmgr.config import GovernanceConfig
from branchmgr.errors import BranchMgrError
from branchmgr.models import OperationTarget, ProtectionReason, ProtectionVerdict

logger = logging.getLogger(__name__)

DefaultBranchLookup = Callable[[str], str]


def protection_reason(
    branch: str,
    config: GovernanceConfig,
    default_branch: Optional[str] = None,
) -> ProtectionReason:
    """
    Return why `branch` is protected, or ProtectionReason.NONE.

    Name and prefix rules compare lower-cased; the default-branch rule is
    exact because branch names are case-sensitive on the remote.
    """
    if default_branch is not None and branch == default_branch:
        return ProtectionReason.DEFAULT_BRANCH

    lowered = branch.lower()
    if lowered in config.protected_names:
        return ProtectionReason.EXACT_NAME
    if any(lowered.startswith(prefix) for prefix in config.protected_prefixes):
        return ProtectionReason.PREFIX_MATCH
    return ProtectionReason.NONE


class ProtectionClassifier:
    """
    Decide whether each target is protected.

    The default branch is looked up once per unique repository and cached for
    the lifetime of this classifier, which is one run.
    """

    def __init__(self, config: GovernanceConfig, default_branch_lookup: DefaultBranchLookup) -> None:
        self._config = config
        self._lookup = default_branch_lookup
        self._default_branches: dict[str, str] = {}
        self._failures: dict[str, BranchMgrError] = {}

    def default_branch(self, repository: str) -> str:
        """Return (and cache) the repository's default branch. Raises on failure."""
        if repository in self._failures:
            raise self._failures[repository]
        if repository not in self._default_branches:
            try:
                self._default_branches[repository] = self._lookup(repository)
            except BranchMgrError as exc:
                self._failures[repository] = exc
                raise
        return self._default_branches[repository]

    def classify(self, target: OperationTarget) -> ProtectionVerdict:
        default = self.default_branch(target.repository)
        return _verdict(target, protection_reason(target.branch, self._config, default))

    def classify_all(
        self,
        targets: Sequence[OperationTarget],
    ) -> tuple[list[ProtectionVerdict], dict[OperationTarget, BranchMgrError]]:
        """
        Classify every target before any decision is taken.

        Returns:
            (verdicts, unresolved) where unresolved maps targets whose default
            branch lookup failed to the lookup error. Static rules still apply
            to those targets, so a name/prefix hit is reported even when the
            remote is unavailable.
        """
        verdicts: list[ProtectionVerdict] = []
        unresolved: dict[OperationTarget, BranchMgrError] = {}

        for target in targets:
            try:
                verdict = self.classify(target)
            except BranchMgrError as exc:
                unresolved[target] = exc
                verdict = _verdict(target, protection_reason(target.branch, self._config))
            if verdict.is_protected:
                logger.warning("Protected target %s (%s)", target.key, verdict.reason.value)
            verdicts.append(verdict)

        return verdicts, unresolved


def _verdict(target: OperationTarget, reason: ProtectionReason) -> ProtectionVerdict:
    return ProtectionVerdict(
        target=target,
        is_protected=reason is not ProtectionReason.NONE,
        reason=reason,
    )
