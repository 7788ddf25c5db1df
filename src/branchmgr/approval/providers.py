"""Decision providers shipped with branchmgr."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

import click

from branchmgr.models import DeleteStrategy

from .gate import ApprovalDecision, ApprovalRequest


class PreapprovedDecisionProvider:
    """
    Decision collected by the external job runner before invoking branchmgr.

    The gate still verifies the identity against the approver set.
    """

    def __init__(self, approver: str, *, sub_mode: Optional[DeleteStrategy] = None) -> None:
        self._approver = approver
        self._sub_mode = sub_mode

    def decide(self, request: ApprovalRequest, cancel_event: threading.Event) -> ApprovalDecision:
        return ApprovalDecision(approved=True, approver=self._approver, sub_mode=self._sub_mode)


class PollingDecisionProvider:
    """
    Poll an external approval source until it answers.

    `poll()` returns None while the decision is pending. The wait is
    cancellable through cancel_event and bounded by timeout_sec if given.
    """

    def __init__(
        self,
        poll: Callable[[ApprovalRequest], Optional[ApprovalDecision]],
        *,
        interval_sec: float = 5.0,
        timeout_sec: Optional[float] = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._poll = poll
        self._interval = interval_sec
        self._timeout = timeout_sec

    def decide(self, request: ApprovalRequest, cancel_event: threading.Event) -> ApprovalDecision:
        deadline = None if self._timeout is None else time.monotonic() + self._timeout
        while not cancel_event.is_set():
            decision = self._poll(request)
            if decision is not None:
                return decision
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("No approval decision before timeout")
            cancel_event.wait(self._interval)
        return ApprovalDecision(approved=False, reason="cancelled")


class PromptDecisionProvider:
    """Interactive terminal approval (used by the CLI)."""

    def __init__(self, *, default_approver: Optional[str] = None) -> None:
        self._default_approver = default_approver

    def decide(self, request: ApprovalRequest, cancel_event: threading.Event) -> ApprovalDecision:
        click.echo(f"Run {request.run_id} requests {request.mode.value} on:", err=True)
        for target in request.targets:
            click.echo(f"  - {target.key}", err=True)

        try:
            approver = click.prompt("Approver identity", default=self._default_approver, err=True)
            sub_mode: Optional[DeleteStrategy] = None
            if request.sub_modes:
                choice = click.prompt(
                    "Delete strategy",
                    type=click.Choice([m.value for m in request.sub_modes], case_sensitive=False),
                    default=DeleteStrategy.BACKUP_AND_DELETE.value,
                    err=True,
                )
                sub_mode = DeleteStrategy(choice.upper())
            approved = click.confirm("Approve?", default=False, err=True)
        except click.Abort:
            return ApprovalDecision(approved=False, reason="aborted")

        if cancel_event.is_set():
            return ApprovalDecision(approved=False, approver=approver, reason="cancelled")
        return ApprovalDecision(
            approved=approved,
            approver=approver,
            sub_mode=sub_mode,
            reason=None if approved else "rejected at prompt",
        )
