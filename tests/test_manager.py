import tempfile
import threading
import unittest
from pathlib import Path

from branchmgr.approval import ApprovalDecision, ApprovalGate, ApprovalRequest
from branchmgr.audit import read_report
from branchmgr.backup import MirrorBackupManager
from branchmgr.config import GovernanceConfig
from branchmgr.errors import (
    ApprovalDeniedOrTimedOutError,
    BackupMissingError,
    BackupVerificationError,
    GitCommandError,
    InvalidInputError,
    MissingBranchError,
    ProtectedBranchError,
    RemoteRejectionError,
    RemoteUnavailableError,
)
from branchmgr.manager import BranchOperationManager
from branchmgr.models import DeleteStrategy, OperationMode, TargetState


class FakeRemote:
    def __init__(self, refs: dict[str, set[str]], defaults: dict[str, str]) -> None:
        self.refs = refs
        self.defaults = defaults
        self.calls: list[tuple] = []
        self.delete_status: dict[str, int] = {}
        self.broken: set[str] = set()

    def get_default_branch(self, repository: str) -> str:
        self.calls.append(("get_default_branch", repository))
        return self.defaults[repository]

    def get_ref(self, repository: str, branch: str):
        self.calls.append(("get_ref", repository, branch))
        if branch in self.broken:
            raise RemoteUnavailableError("HTTP 502", details={"status_code": 502})
        if branch in self.refs.get(repository, set()):
            return {"ref": f"refs/heads/{branch}"}
        return None

    def delete_ref(self, repository: str, branch: str) -> int:
        self.calls.append(("delete_ref", repository, branch))
        status = self.delete_status.get(branch, 204)
        if status == 204:
            self.refs[repository].discard(branch)
        return status

    @property
    def deletes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] == "delete_ref"]


class FakeGit:
    def __init__(self, remote: FakeRemote) -> None:
        self.remote = remote
        self.calls: list[tuple] = []
        self.snapshot: dict[str, set[str]] = {}
        self.fail_clone = False

    def clone_mirror(self, url: str, dest: Path) -> None:
        self.calls.append(("clone_mirror", url, dest))
        if self.fail_clone:
            raise GitCommandError("clone failed", details={"returncode": 128})
        dest.mkdir(parents=True, exist_ok=True)
        (dest / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
        self._snapshot(url)

    def remote_update(self, mirror: Path) -> None:
        self.calls.append(("remote_update", mirror))

    def has_ref(self, mirror: Path, branch: str) -> bool:
        return any(branch in refs for refs in self.snapshot.values())

    def push_ref(self, mirror: Path, url: str, branch: str) -> None:
        self.calls.append(("push_ref", url, branch))
        repository = url.split("github.com/", 1)[1].removesuffix(".git")
        self.remote.refs[repository].add(branch)

    def _snapshot(self, url: str) -> None:
        repository = url.split("github.com/", 1)[1].removesuffix(".git")
        self.snapshot[repository] = set(self.remote.refs.get(repository, set()))


class FakeProvider:
    def __init__(self, approver: str = "alice", *, approved: bool = True, sub_mode=None) -> None:
        self.approver = approver
        self.approved = approved
        self.sub_mode = sub_mode
        self.requests: list[ApprovalRequest] = []

    def decide(self, request: ApprovalRequest, cancel_event: threading.Event) -> ApprovalDecision:
        self.requests.append(request)
        return ApprovalDecision(approved=self.approved, approver=self.approver, sub_mode=self.sub_mode)


class TestBranchOperationManager(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.tmp = Path(self._td.name)
        self.config = GovernanceConfig(
            approvers=frozenset({"alice"}),
            default_owner="acme",
            mirror_root=self.tmp / "mirrors",
            report_dir=self.tmp / "reports",
        )
        self.remote = FakeRemote(
            refs={"acme/app": {"main", "feature/x", "feature/y"}},
            defaults={"acme/app": "trunk"},
        )
        self.git = FakeGit(self.remote)
        self.provider = FakeProvider()
        self.mgr = self._manager(self.provider)

    def tearDown(self) -> None:
        self._td.cleanup()

    def _manager(self, provider: FakeProvider) -> BranchOperationManager:
        return BranchOperationManager.from_components(
            self.config,
            self.remote,
            MirrorBackupManager(self.config, self.git),
            ApprovalGate(self.config, provider),
        )

    def _rows(self, run_id: str) -> list[dict[str, str]]:
        return read_report(self.config.report_dir / f"branch-ops-{run_id}.csv")

    def test_clean_delete(self) -> None:
        result = self.mgr.run("acme/app:feature/x\n", OperationMode.DELETE, run_id="r1")

        self.assertEqual(result.status, "success")
        self.assertEqual(result.approval.approver, "alice")
        self.assertIs(result.approval.sub_mode, DeleteStrategy.BACKUP_AND_DELETE)
        self.assertNotIn("feature/x", self.remote.refs["acme/app"])
        self.assertTrue((self.config.mirror_root / "acme" / "app.git" / "HEAD").is_file())

        rows = self._rows("r1")
        self.assertEqual(len(rows), 1)
        self.assertEqual(
            (rows[0]["Repo"], rows[0]["Branch"], rows[0]["Action"], rows[0]["Status"]),
            ("acme/app", "feature/x", "DELETE", "DELETED"),
        )
        self.assertEqual(rows[0]["ApprovedBy"], "alice")
        self.assertEqual(rows[0]["RunId"], "r1")
        self.assertTrue(rows[0]["BackupPath"].endswith("app.git"))

    def test_backup_happens_before_delete(self) -> None:
        self.mgr.run("app|feature/x\napp:feature/y\n", OperationMode.DELETE, run_id="r1")

        clone_index = next(i for i, c in enumerate(self.git.calls) if c[0] == "clone_mirror")
        self.assertEqual(clone_index, 0)
        self.assertEqual(len([c for c in self.git.calls if c[0] == "clone_mirror"]), 1)
        self.assertEqual(len(self.remote.deletes), 2)

    def test_protected_target_blocks_whole_run(self) -> None:
        with self.assertRaises(ProtectedBranchError) as ctx:
            self.mgr.run("acme/app:feature/x\nacme/app:main\n", OperationMode.DELETE, run_id="r1")

        self.assertEqual(ctx.exception.violations, ["acme/app:main"])
        self.assertEqual(self.provider.requests, [])
        self.assertEqual(self.remote.deletes, [])
        self.assertEqual(self.git.calls, [])

        rows = self._rows("r1")
        self.assertEqual([(r["Action"], r["Status"]) for r in rows], [("VALIDATE", "PROTECTED")])
        self.assertEqual(ctx.exception.details["run_id"], "r1")

    def test_default_branch_is_protected(self) -> None:
        self.remote.refs["acme/app"].add("trunk")
        with self.assertRaises(ProtectedBranchError):
            self.mgr.run("acme/app:trunk", OperationMode.VALIDATE)

    def test_missing_branch_never_asks_for_approval(self) -> None:
        with self.assertRaises(MissingBranchError) as ctx:
            self.mgr.run("acme/app:feature/x\nacme/app:feature/ghost", OperationMode.DELETE, run_id="r1")

        self.assertEqual(ctx.exception.missing, ["acme/app:feature/ghost"])
        self.assertEqual(self.provider.requests, [])
        self.assertEqual(self.remote.deletes, [])
        self.assertEqual([r["Status"] for r in self._rows("r1")], ["MISSING"])

    def test_ambiguous_existence_is_fatal(self) -> None:
        self.remote.broken.add("feature/x")
        with self.assertRaises(RemoteUnavailableError):
            self.mgr.run("acme/app:feature/x", OperationMode.DELETE, run_id="r1")
        self.assertEqual(self.provider.requests, [])
        self.assertEqual(self._rows("r1"), [])

    def test_rejected_approval_mutates_nothing(self) -> None:
        mgr = self._manager(FakeProvider(approved=False))
        with self.assertRaises(ApprovalDeniedOrTimedOutError):
            mgr.run("acme/app:feature/x", OperationMode.DELETE, run_id="r1")

        self.assertEqual(self.remote.deletes, [])
        self.assertEqual(self.git.calls, [])
        self.assertEqual(self._rows("r1"), [])

    def test_unknown_approver_mutates_nothing(self) -> None:
        mgr = self._manager(FakeProvider("mallory"))
        with self.assertRaises(ApprovalDeniedOrTimedOutError):
            mgr.run("acme/app:feature/x", OperationMode.DELETE)
        self.assertEqual(self.remote.deletes, [])

    def test_direct_delete_skips_backup(self) -> None:
        mgr = self._manager(FakeProvider(sub_mode=DeleteStrategy.DIRECT_DELETE))
        mgr.run("acme/app:feature/x", OperationMode.DELETE, run_id="r1")

        self.assertEqual(self.git.calls, [])
        rows = self._rows("r1")
        self.assertEqual(rows[0]["Status"], "DELETED")
        self.assertEqual(rows[0]["BackupPath"], "")

    def test_backup_failure_blocks_delete(self) -> None:
        self.git.fail_clone = True
        with self.assertRaises(BackupVerificationError):
            self.mgr.run("acme/app:feature/x\nacme/app:feature/y", OperationMode.DELETE, run_id="r1")

        self.assertEqual(self.remote.deletes, [])
        rows = self._rows("r1")
        self.assertEqual([(r["Action"], r["Status"]) for r in rows], [("BACKUP", "BACKUP_FAILED")] * 2)

    def test_delete_then_restore(self) -> None:
        self.mgr.run("acme/app:feature/x", OperationMode.DELETE, run_id="r1")
        self.assertNotIn("feature/x", self.remote.refs["acme/app"])

        result = self.mgr.run("acme/app:feature/x", OperationMode.BACKOUT, run_id="r2")

        self.assertEqual(result.status, "success")
        self.assertIn("feature/x", self.remote.refs["acme/app"])
        self.assertEqual(len([c for c in self.git.calls if c[0] == "clone_mirror"]), 1)
        self.assertEqual(len([c for c in self.git.calls if c[0] == "remote_update"]), 0)
        rows = self._rows("r2")
        self.assertEqual([(r["Action"], r["Status"]) for r in rows], [("BACKOUT", "RESTORED")])

    def test_restore_without_mirror(self) -> None:
        with self.assertRaises(BackupMissingError):
            self.mgr.run("acme/app:feature/gone\nacme/app:feature/x", OperationMode.BACKOUT, run_id="r1")

        rows = self._rows("r1")
        self.assertEqual(len(rows), 1)
        self.assertEqual((rows[0]["Action"], rows[0]["Status"]), ("BACKOUT", "BACKUP_MISSING"))
        self.assertEqual(self.git.calls, [])

    def test_failure_returned_when_not_raising(self) -> None:
        self.remote.delete_status["feature/x"] = 422
        result = self.mgr.run(
            "acme/app:feature/x\nacme/app:feature/y",
            OperationMode.DELETE,
            run_id="r1",
            raise_on_failure=False,
        )

        self.assertEqual(result.status, "failed")
        self.assertIsInstance(result.error, RemoteRejectionError)
        self.assertEqual(result.error.details["audit_path"], str(result.audit_path))
        self.assertEqual(
            [r.state for r in result.results], [TargetState.FAILED, TargetState.PENDING]
        )
        self.assertEqual(len(self.remote.deletes), 1)
        with self.assertRaises(RemoteRejectionError):
            result.raise_for_status()

    def test_validate_is_read_only(self) -> None:
        result = self.mgr.run("acme/app:feature/x", OperationMode.VALIDATE, run_id="r1")

        self.assertIsNone(result.approval)
        self.assertEqual(self.provider.requests, [])
        self.assertEqual(self.remote.deletes, [])
        self.assertEqual(self.git.calls, [])
        self.assertEqual([r["Status"] for r in self._rows("r1")], ["ELIGIBLE"])

    def test_backup_mode_runs_without_approval(self) -> None:
        result = self.mgr.run("acme/app:feature/x", OperationMode.BACKUP, run_id="r1")

        self.assertEqual(result.status, "success")
        self.assertEqual(self.provider.requests, [])
        self.assertEqual(self.remote.deletes, [])
        self.assertEqual([r["Status"] for r in self._rows("r1")], ["BACKED_UP"])

    def test_empty_input_leaves_header_only_report(self) -> None:
        with self.assertRaises(InvalidInputError) as ctx:
            self.mgr.run("\n  \n", OperationMode.DELETE, run_id="r1")

        path = Path(ctx.exception.details["audit_path"])
        self.assertTrue(path.is_file())
        self.assertEqual(read_report(path), [])
        self.assertEqual(self.remote.calls, [])

    def test_duplicates_are_collapsed(self) -> None:
        result = self.mgr.run(
            "acme/app:feature/x\napp:feature/x\nacme/app|feature/x\n",
            OperationMode.DELETE,
            run_id="r1",
        )
        self.assertEqual(len(result.results), 1)
        self.assertEqual(len(self.remote.deletes), 1)


if __name__ == "__main__":
    unittest.main()
