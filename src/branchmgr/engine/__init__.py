"""Public engine exports for branchmgr."""

from __future__ import annotations

from .executor import ExecutionEngine, ExecutionReport, RefDeleter
from .outcomes import DELETE_SUCCESS_STATUS, delete_outcome

__all__ = [
    "ExecutionEngine",
    "ExecutionReport",
    "RefDeleter",
    "DELETE_SUCCESS_STATUS",
    "delete_outcome",
]
