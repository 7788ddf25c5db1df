from __future__ import annotations

import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_run_id() -> str:
    """Generate a new run ID (one per process invocation)."""
    return new_uuid()
