"""Two-pass preflight: classify and check every target, then decide."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from branchmgr.errors import (
    BranchMgrError,
    MissingBranchError,
    ProtectedBranchError,
    RemoteUnavailableError,
)
from branchmgr.models import (
    ExistenceVerdict,
    OperationTarget,
    ProtectionVerdict,
)

from .existence import ExistenceValidator
from .protection import ProtectionClassifier

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreflightReport:
    """Everything both passes found, collected before any decision."""

    targets: list[OperationTarget]
    protection: list[ProtectionVerdict]
    existence: list[ExistenceVerdict]
    ambiguous: dict[OperationTarget, BranchMgrError] = field(default_factory=dict)
    require_existence: bool = True

    @property
    def protected(self) -> list[ProtectionVerdict]:
        return [v for v in self.protection if v.is_protected]

    @property
    def missing(self) -> list[OperationTarget]:
        if not self.require_existence:
            return []
        return [v.target for v in self.existence if not v.exists]

    @property
    def eligible(self) -> list[OperationTarget]:
        """Targets that are unprotected and (when required) known to exist."""
        blocked = {v.target for v in self.protected}
        blocked.update(self.missing)
        blocked.update(self.ambiguous)
        return [t for t in self.targets if t not in blocked]

    @property
    def ok(self) -> bool:
        return not (self.ambiguous or self.protected or self.missing)

    def raise_for_violations(self) -> None:
        """
        Raise the aggregated preflight error, if any.

        Priority: ambiguous remote answers, then protection hits (with the
        missing list attached), then missing targets. Every ambiguous answer,
        a 401 included, surfaces as RemoteUnavailableError with the original
        error as its cause.
        """
        protected = self.protected
        missing = [t.key for t in self.missing]

        if self.ambiguous:
            first = next(iter(self.ambiguous.values()))
            keys = [t.key for t in self.ambiguous]
            raise RemoteUnavailableError(
                "Remote returned ambiguous answers during validation: " + ", ".join(keys),
                details={
                    **first.details,
                    "error_type": first.__class__.__name__,
                    "targets": keys,
                    "protected": [v.target.key for v in protected],
                    "missing": missing,
                },
                cause=first,
            ) from first

        if protected:
            raise ProtectedBranchError(
                [v.target.key for v in protected],
                details={
                    "reasons": {v.target.key: v.reason.value for v in protected},
                    "missing": missing,
                },
            )
        if missing:
            raise MissingBranchError(missing)


def run_preflight(
    targets: Sequence[OperationTarget],
    classifier: ProtectionClassifier,
    validator: ExistenceValidator,
    *,
    require_existence: bool = True,
) -> PreflightReport:
    """
    Run both passes to completion over all targets.

    Existence is always queried so ambiguous answers stay fatal; when
    require_existence is False a 404 is not a violation (restores target
    refs that are normally gone).
    """
    protection, unresolved = classifier.classify_all(targets)
    existence, ambiguous = validator.check_all(targets)

    merged: dict[OperationTarget, BranchMgrError] = dict(unresolved)
    for target, exc in ambiguous.items():
        merged.setdefault(target, exc)

    report = PreflightReport(
        targets=list(targets),
        protection=protection,
        existence=existence,
        ambiguous=merged,
        require_existence=require_existence,
    )
    logger.info(
        "Preflight: %d targets, %d protected, %d missing, %d ambiguous",
        len(report.targets),
        len(report.protected),
        len(report.missing),
        len(report.ambiguous),
    )
    return report
