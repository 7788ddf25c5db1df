"""Public validation exports for branchmgr."""

from __future__ import annotations

from .existence import ExistenceValidator
from .normalize import normalize_targets, parse_target_line
from .preflight import PreflightReport, run_preflight
from .protection import ProtectionClassifier, protection_reason

__all__ = [
    "normalize_targets",
    "parse_target_line",
    "ProtectionClassifier",
    "protection_reason",
    "ExistenceValidator",
    "PreflightReport",
    "run_preflight",
]
