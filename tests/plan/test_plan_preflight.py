import unittest

import httpx

from branchmgr.config import GovernanceConfig
from branchmgr.controller import RemoteController
from branchmgr.errors import (
    AuthError,
    MissingBranchError,
    ProtectedBranchError,
    RemoteUnavailableError,
)
from branchmgr.models import OperationTarget
from branchmgr.plan import ExistenceValidator, ProtectionClassifier, run_preflight


class FakeRemote:
    def __init__(self, refs: dict[str, set[str]], defaults: dict[str, str], broken=()) -> None:
        self.refs = refs
        self.defaults = defaults
        self.broken = set(broken)

    def get_default_branch(self, repository: str) -> str:
        return self.defaults[repository]

    def get_ref(self, repository: str, branch: str):
        if branch in self.broken:
            raise RemoteUnavailableError("HTTP 500", details={"status_code": 500})
        if branch in self.refs.get(repository, set()):
            return {"ref": f"refs/heads/{branch}"}
        return None


def _preflight(remote: FakeRemote, targets, *, require_existence=True):
    return run_preflight(
        targets,
        ProtectionClassifier(GovernanceConfig(), remote.get_default_branch),
        ExistenceValidator(remote.get_ref),
        require_existence=require_existence,
    )


class TestPreflight(unittest.TestCase):
    def setUp(self) -> None:
        self.remote = FakeRemote(
            refs={"acme/app": {"main", "feature/x", "release/2"}},
            defaults={"acme/app": "main"},
        )

    def test_clean_targets_are_eligible(self) -> None:
        targets = [OperationTarget("acme/app", "feature/x")]
        report = _preflight(self.remote, targets)
        self.assertTrue(report.ok)
        self.assertEqual(report.eligible, targets)
        report.raise_for_violations()

    def test_protected_and_missing_are_aggregated(self) -> None:
        targets = [
            OperationTarget("acme/app", "main"),
            OperationTarget("acme/app", "feature/ghost"),
            OperationTarget("acme/app", "release/2"),
            OperationTarget("acme/app", "feature/x"),
        ]
        report = _preflight(self.remote, targets)

        self.assertFalse(report.ok)
        self.assertEqual(len(report.protected), 2)
        self.assertEqual(report.missing, [targets[1]])
        self.assertEqual(report.eligible, [targets[3]])

        with self.assertRaises(ProtectedBranchError) as ctx:
            report.raise_for_violations()
        err = ctx.exception
        self.assertEqual(err.violations, ["acme/app:main", "acme/app:release/2"])
        self.assertEqual(err.details["missing"], ["acme/app:feature/ghost"])
        self.assertEqual(err.details["reasons"]["acme/app:main"], "DEFAULT_BRANCH")

    def test_missing_only(self) -> None:
        report = _preflight(self.remote, [OperationTarget("acme/app", "feature/ghost")])
        with self.assertRaises(MissingBranchError) as ctx:
            report.raise_for_violations()
        self.assertEqual(ctx.exception.missing, ["acme/app:feature/ghost"])

    def test_missing_is_not_a_violation_when_existence_not_required(self) -> None:
        report = _preflight(
            self.remote,
            [OperationTarget("acme/app", "feature/ghost")],
            require_existence=False,
        )
        self.assertTrue(report.ok)

    def test_ambiguous_answer_is_fatal(self) -> None:
        remote = FakeRemote(
            refs={"acme/app": {"feature/x"}},
            defaults={"acme/app": "main"},
            broken={"feature/flaky"},
        )
        targets = [OperationTarget("acme/app", "feature/flaky"), OperationTarget("acme/app", "main")]
        report = _preflight(remote, targets, require_existence=False)

        self.assertFalse(report.ok)
        with self.assertRaises(RemoteUnavailableError) as ctx:
            report.raise_for_violations()
        self.assertEqual(ctx.exception.details["targets"], ["acme/app:feature/flaky"])
        self.assertEqual(ctx.exception.details["protected"], ["acme/app:main"])

    def test_auth_failure_on_lookup_is_remote_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "/git/ref/" in request.url.path:
                return httpx.Response(401, json={"message": "Bad credentials"})
            return httpx.Response(200, json={"default_branch": "main"})

        client = httpx.Client(
            base_url="https://api.example.test",
            transport=httpx.MockTransport(handler),
        )
        remote = RemoteController.from_client(client)
        targets = [OperationTarget("acme/app", "feature/x"), OperationTarget("acme/app", "main")]

        report = _preflight(remote, targets)

        self.assertFalse(report.ok)
        with self.assertRaises(RemoteUnavailableError) as ctx:
            report.raise_for_violations()
        err = ctx.exception
        self.assertIsInstance(err.cause, AuthError)
        self.assertEqual(err.details["error_type"], "AuthError")
        self.assertEqual(err.details["targets"], ["acme/app:feature/x", "acme/app:main"])
        self.assertEqual(err.details["protected"], ["acme/app:main"])


if __name__ == "__main__":
    unittest.main()
