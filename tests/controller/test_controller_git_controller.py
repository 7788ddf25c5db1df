import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from branchmgr.controller import GitController
from branchmgr.errors import GitCommandError

AUTH = ["-c", "http.extraHeader=Authorization: Basic c2VjcmV0"]


def _done(returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


class TestGitController(unittest.TestCase):
    def test_clone_mirror_argv(self) -> None:
        git = GitController(AUTH)
        with tempfile.TemporaryDirectory() as td:
            dest = Path(td) / "acme" / "app.git"
            with patch("subprocess.run", return_value=_done()) as run:
                git.clone_mirror("https://github.com/acme/app.git", dest)
            argv = run.call_args.args[0]
            self.assertEqual(argv[:3], ["git", "-c", AUTH[1]])
            self.assertEqual(argv[3:], ["clone", "--mirror", "https://github.com/acme/app.git", str(dest)])
            self.assertTrue(dest.parent.is_dir())
            self.assertEqual(run.call_args.kwargs["env"]["GIT_TERMINAL_PROMPT"], "0")

    def test_push_is_not_forced(self) -> None:
        git = GitController(AUTH)
        with patch("subprocess.run", return_value=_done()) as run:
            git.push_ref(Path("/m/app.git"), "https://github.com/acme/app.git", "feature/x")
        argv = run.call_args.args[0]
        self.assertIn("refs/heads/feature/x:refs/heads/feature/x", argv)
        self.assertNotIn("--force", argv)
        self.assertFalse(any(a.startswith("+") for a in argv))

    def test_remote_update_prunes(self) -> None:
        git = GitController()
        with patch("subprocess.run", return_value=_done()) as run:
            git.remote_update(Path("/m/app.git"))
        self.assertEqual(
            run.call_args.args[0],
            ["git", "-C", "/m/app.git", "remote", "update", "--prune"],
        )

    def test_has_ref(self) -> None:
        git = GitController()
        with patch("subprocess.run", return_value=_done(0)):
            self.assertTrue(git.has_ref(Path("/m/app.git"), "feature/x"))
        with patch("subprocess.run", return_value=_done(1)):
            self.assertFalse(git.has_ref(Path("/m/app.git"), "feature/x"))

    def test_failure_raises_with_redacted_argv(self) -> None:
        git = GitController(AUTH)
        with patch("subprocess.run", return_value=_done(128, "fatal: denied")):
            with self.assertRaises(GitCommandError) as ctx:
                git.remote_update(Path("/m/app.git"))
        details = ctx.exception.details
        self.assertEqual(details["returncode"], 128)
        self.assertEqual(details["stderr"], "fatal: denied")
        self.assertNotIn("c2VjcmV0", " ".join(details["argv"]))

    def test_missing_binary_raises(self) -> None:
        git = GitController(git_binary="git-does-not-exist")
        with patch("subprocess.run", side_effect=FileNotFoundError("no git")):
            with self.assertRaises(GitCommandError):
                git.remote_update(Path("/m/app.git"))


if __name__ == "__main__":
    unittest.main()
