"""Per-target validation verdicts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .target import OperationTarget


class ProtectionReason(str, Enum):
    EXACT_NAME = "EXACT_NAME"
    PREFIX_MATCH = "PREFIX_MATCH"
    DEFAULT_BRANCH = "DEFAULT_BRANCH"
    NONE = "NONE"


@dataclass(slots=True, frozen=True)
class ProtectionVerdict:
    target: OperationTarget
    is_protected: bool
    reason: ProtectionReason


@dataclass(slots=True, frozen=True)
class ExistenceVerdict:
    """Point-in-time existence of a target ref on the remote."""

    target: OperationTarget
    exists: bool
    status_code: Optional[int] = None
