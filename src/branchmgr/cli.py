"""branchmgr CLI -- entry point invoked by the job runner.

Loaded only via the ``branchmgr`` console script; never imported from
branchmgr/__init__.py.
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Optional, TextIO

import click

from branchmgr.approval import PreapprovedDecisionProvider, PromptDecisionProvider
from branchmgr.auth import AuthInfo
from branchmgr.config import GovernanceConfig
from branchmgr.errors import BranchMgrError
from branchmgr.manager import BranchOperationManager
from branchmgr.models import DeleteStrategy, OperationMode, RunResult

_MODE_CHOICES = [m.value.lower() for m in OperationMode]


def resolve_mode(
    mode: Optional[str],
    *,
    dry_run: bool,
    enable_delete: bool,
    enable_backout: bool,
) -> OperationMode:
    """Resolve --mode or the flag form into one OperationMode."""
    flags_used = dry_run or enable_delete or enable_backout
    if mode is not None:
        if flags_used:
            raise click.UsageError("--mode cannot be combined with --dry-run/--enable-* flags")
        return OperationMode.parse(mode)
    try:
        return OperationMode.from_flags(
            dry_run=dry_run,
            enable_delete=enable_delete,
            enable_backout=enable_backout,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from None


@click.command()
@click.option(
    "--targets-file",
    "-f",
    type=click.File("r", encoding="utf-8"),
    default="-",
    help="File with one repository:branch pair per line (default: stdin).",
)
@click.option("--mode", type=click.Choice(_MODE_CHOICES, case_sensitive=False), default=None)
@click.option("--dry-run", is_flag=True, help="Validate only.")
@click.option("--enable-delete", is_flag=True, help="Delete the listed branches.")
@click.option("--enable-backout", is_flag=True, help="Restore the listed branches from mirrors.")
@click.option("--approver", default=None, envvar="BRANCHMGR_APPROVER", help="Approver identity.")
@click.option(
    "--yes",
    "preapproved",
    is_flag=True,
    help="The job runner already collected approval from --approver.",
)
@click.option("--direct-delete", is_flag=True, help="Skip the mirror backup before delete.")
@click.option("--token-env", default="GITHUB_TOKEN", show_default=True)
@click.option("--report-dir", type=click.Path(file_okay=False), default=None)
@click.option("--mirror-root", type=click.Path(file_okay=False), default=None)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(
    targets_file: TextIO,
    mode: Optional[str],
    dry_run: bool,
    enable_delete: bool,
    enable_backout: bool,
    approver: Optional[str],
    preapproved: bool,
    direct_delete: bool,
    token_env: str,
    report_dir: Optional[str],
    mirror_root: Optional[str],
    verbose: bool,
) -> None:
    """Governed branch deletion and restore."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    op_mode = resolve_mode(
        mode,
        dry_run=dry_run,
        enable_delete=enable_delete,
        enable_backout=enable_backout,
    )
    if preapproved and not approver:
        raise click.UsageError("--yes requires --approver")

    try:
        config = GovernanceConfig.from_env()
        overrides = {}
        if report_dir:
            overrides["report_dir"] = report_dir
        if mirror_root:
            overrides["mirror_root"] = mirror_root
        if overrides:
            config = config.with_overrides(**overrides)
    except BranchMgrError as exc:
        raise click.UsageError(str(exc)) from None

    sub_mode = DeleteStrategy.DIRECT_DELETE if direct_delete else None
    if preapproved:
        provider = PreapprovedDecisionProvider(approver or "", sub_mode=sub_mode)
    else:
        provider = PromptDecisionProvider(default_approver=approver)

    cancel = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())

    text = targets_file.read()
    try:
        manager = BranchOperationManager(
            config,
            AuthInfo(kind="token", data={"token_env": token_env}),
            provider,
        )
    except BranchMgrError as exc:
        _echo_error(exc)
        raise SystemExit(1) from None

    try:
        result = manager.run(text, op_mode, cancel_event=cancel, raise_on_failure=False)
    except BranchMgrError as exc:
        _echo_error(exc)
        raise SystemExit(1) from None
    finally:
        manager.close()

    _echo_result(result)
    if result.error is not None:
        _echo_error(result.error)
        raise SystemExit(1)


def _echo_result(result: RunResult) -> None:
    for r in result.results:
        outcome = r.outcome.value if r.outcome else "-"
        click.echo(f"{r.target.key}\t{r.action}\t{r.state.value}\t{outcome}")
    click.echo(f"run {result.run_id}: {result.status} {result.summary}")
    if result.audit_path:
        click.echo(f"audit report: {result.audit_path}")


def _echo_error(exc: BaseException) -> None:
    click.echo(f"error: {exc}", err=True)
    details = getattr(exc, "details", {}) or {}
    audit_path = details.get("audit_path")
    if audit_path:
        click.echo(f"audit report: {audit_path}", err=True)


if __name__ == "__main__":  # pragma: no cover
    main()
