import unittest

from branchmgr.config import GovernanceConfig
from branchmgr.errors import RemoteUnavailableError
from branchmgr.models import OperationTarget, ProtectionReason
from branchmgr.plan import ProtectionClassifier, protection_reason


class FakeDefaults:
    def __init__(self, defaults: dict[str, str]) -> None:
        self.defaults = defaults
        self.calls: list[str] = []

    def __call__(self, repository: str) -> str:
        self.calls.append(repository)
        if repository not in self.defaults:
            raise RemoteUnavailableError("boom", details={"status_code": 500})
        return self.defaults[repository]


class TestProtectionReason(unittest.TestCase):
    def setUp(self) -> None:
        self.config = GovernanceConfig()

    def test_default_branch_is_case_sensitive(self) -> None:
        self.assertIs(
            protection_reason("trunk", self.config, "trunk"),
            ProtectionReason.DEFAULT_BRANCH,
        )
        self.assertIs(
            protection_reason("Trunk", self.config, "trunk"),
            ProtectionReason.NONE,
        )

    def test_exact_names_are_case_insensitive(self) -> None:
        for name in ("main", "MAIN", "Staging", "qa", "Production"):
            self.assertIs(protection_reason(name, self.config, "other"), ProtectionReason.EXACT_NAME)

    def test_prefixes_are_case_insensitive(self) -> None:
        for name in ("release/1.0", "Hotfix/urgent", "SUPPORT/x"):
            self.assertIs(protection_reason(name, self.config, "other"), ProtectionReason.PREFIX_MATCH)

    def test_unprotected(self) -> None:
        for name in ("feature/x", "mainline", "releases", "release"):
            self.assertIs(protection_reason(name, self.config, "trunk"), ProtectionReason.NONE)

    def test_static_rules_protect_regardless_of_default_branch(self) -> None:
        # Matching both the default branch and a static rule is still protected.
        reason = protection_reason("main", self.config, "main")
        self.assertIsNot(reason, ProtectionReason.NONE)


class TestProtectionClassifier(unittest.TestCase):
    def test_default_branch_looked_up_once_per_repository(self) -> None:
        lookup = FakeDefaults({"acme/app": "trunk"})
        classifier = ProtectionClassifier(GovernanceConfig(), lookup)

        verdicts, unresolved = classifier.classify_all(
            [
                OperationTarget("acme/app", "feature/a"),
                OperationTarget("acme/app", "trunk"),
                OperationTarget("acme/app", "main"),
            ]
        )

        self.assertEqual(lookup.calls, ["acme/app"])
        self.assertEqual(unresolved, {})
        self.assertEqual(
            [v.reason for v in verdicts],
            [ProtectionReason.NONE, ProtectionReason.DEFAULT_BRANCH, ProtectionReason.EXACT_NAME],
        )
        self.assertEqual([v.is_protected for v in verdicts], [False, True, True])

    def test_lookup_failure_still_applies_static_rules(self) -> None:
        lookup = FakeDefaults({})
        classifier = ProtectionClassifier(GovernanceConfig(), lookup)
        targets = [OperationTarget("acme/down", "main"), OperationTarget("acme/down", "feature/x")]

        verdicts, unresolved = classifier.classify_all(targets)

        self.assertEqual(set(unresolved), set(targets))
        self.assertTrue(verdicts[0].is_protected)
        self.assertFalse(verdicts[1].is_protected)
        # The failure is cached for the run; no second remote call.
        self.assertEqual(lookup.calls, ["acme/down"])


if __name__ == "__main__":
    unittest.main()
