"""Remote status -> outcome mapping for ref deletes."""

from __future__ import annotations

from branchmgr.models import Outcome

DELETE_SUCCESS_STATUS: int = 204

_DELETE_FAILURES: dict[int, Outcome] = {
    404: Outcome.NOT_FOUND,
    403: Outcome.PERMISSION_DENIED,
    422: Outcome.REJECTED_BY_REMOTE,
}


def delete_outcome(status_code: int | None) -> Outcome:
    """
    Map a ref-delete HTTP status to an Outcome.

    Policy:
        - 204 -> DELETED
        - 404 -> NOT_FOUND (target vanished after validation)
        - 403 -> PERMISSION_DENIED
        - 422 -> REJECTED_BY_REMOTE (server-side protection)
        - otherwise (including no status) -> UNEXPECTED_REMOTE_ERROR
    """
    if status_code == DELETE_SUCCESS_STATUS:
        return Outcome.DELETED
    if status_code is None:
        return Outcome.UNEXPECTED_REMOTE_ERROR
    return _DELETE_FAILURES.get(status_code, Outcome.UNEXPECTED_REMOTE_ERROR)
