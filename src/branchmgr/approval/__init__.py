"""Public approval exports for branchmgr."""

from __future__ import annotations

from .gate import ApprovalDecision, ApprovalGate, ApprovalRequest, DecisionProvider
from .providers import (
    PollingDecisionProvider,
    PreapprovedDecisionProvider,
    PromptDecisionProvider,
)

__all__ = [
    "ApprovalGate",
    "ApprovalRequest",
    "ApprovalDecision",
    "DecisionProvider",
    "PreapprovedDecisionProvider",
    "PollingDecisionProvider",
    "PromptDecisionProvider",
]
