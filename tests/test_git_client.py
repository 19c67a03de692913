"""
Tests for the git infrastructure layer.

Parsing and error handling use a mocked _run; the integration tests at the
bottom run the real git binary against a local repository.
"""

import shutil
import subprocess
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock, patch

import pytest

from refwatch.domain import HEAD, RemoteReference, RemoteReferenceSnapshot
from refwatch.errors import RemoteAccessError
from refwatch.infra.git_client import GitClient, GitRemote, parse_ls_remote


LS_REMOTE_OUTPUT = """\
ref: refs/heads/master\tHEAD
1111111111111111111111111111111111111111\tHEAD
1111111111111111111111111111111111111111\trefs/heads/master
2222222222222222222222222222222222222222\trefs/pull/42/head
3333333333333333333333333333333333333333\trefs/tags/v1.0
4444444444444444444444444444444444444444\trefs/tags/v1.0^{}
"""


class TestParseLsRemote(unittest.TestCase):
    """Test parsing of ls-remote output"""

    def test_parses_symbolic_and_concrete(self):
        refs = parse_ls_remote(LS_REMOTE_OUTPUT)

        self.assertEqual(
            [r.name for r in refs],
            [HEAD, "refs/heads/master", "refs/pull/42/head", "refs/tags/v1.0"],
        )
        self.assertEqual(refs[0].symbolic_target, "refs/heads/master")
        self.assertEqual(refs[0].object_id, "1" * 40)
        self.assertIsNone(refs[1].symbolic_target)

    def test_peeled_tags_dropped(self):
        names = [r.name for r in parse_ls_remote(LS_REMOTE_OUTPUT)]
        self.assertNotIn("refs/tags/v1.0^{}", names)
        self.assertEqual(parse_ls_remote(LS_REMOTE_OUTPUT)[3].object_id, "3" * 40)

    def test_blank_and_malformed_lines_ignored(self):
        self.assertEqual(parse_ls_remote(""), [])
        self.assertEqual(parse_ls_remote("\n\nwarning: redirecting\n"), [])

    def test_detached_head_is_concrete(self):
        refs = parse_ls_remote("abc\tHEAD\nabc\trefs/heads/x\n")
        self.assertFalse(refs[0].is_symbolic)
        self.assertIsNone(RemoteReferenceSnapshot(tuple(refs)).default_reference())


class TestGitClient(unittest.TestCase):
    """Test GitClient with git mocked out"""

    def setUp(self):
        self.client = GitClient(timeout=5)

    def test_ls_remote_runs_symref_listing(self):
        with patch.object(self.client, '_run', return_value=(LS_REMOTE_OUTPUT, '', 0)) as run:
            refs = self.client.ls_remote("origin", cwd="/tmp/repo")

        run.assert_called_once_with(['ls-remote', '--symref', 'origin'], cwd="/tmp/repo")
        self.assertEqual(len(refs), 4)

    def test_ls_remote_failure(self):
        stderr = "fatal: repository 'https://example.com/nope.git/' not found\n"
        with patch.object(self.client, '_run', return_value=('', stderr, 128)):
            with self.assertRaises(RemoteAccessError) as ctx:
                self.client.ls_remote("https://example.com/nope.git")

        self.assertEqual(ctx.exception.remote, "https://example.com/nope.git")
        self.assertIn("not found", ctx.exception.detail)

    def test_ls_remote_failure_without_stderr(self):
        with patch.object(self.client, '_run', return_value=('', '', 2)):
            with self.assertRaises(RemoteAccessError) as ctx:
                self.client.ls_remote("origin")
        self.assertIn("status 2", str(ctx.exception))

    @patch('refwatch.infra.git_client.subprocess.run')
    def test_run_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd='git', timeout=5)
        stdout, stderr, code = self.client._run(['ls-remote', 'origin'])
        self.assertEqual(code, -1)
        self.assertIn("timed out", stderr)

    @patch('refwatch.infra.git_client.subprocess.run')
    def test_run_passes_argument_list(self, mock_run):
        mock_run.return_value = MagicMock(stdout='out', stderr='', returncode=0)
        self.assertEqual(self.client._run(['ls-remote', 'a b; rm -rf /']), ('out', '', 0))
        args, kwargs = mock_run.call_args
        self.assertEqual(args[0], ['git', 'ls-remote', 'a b; rm -rf /'])
        self.assertEqual(kwargs['timeout'], 5)

    @patch('refwatch.infra.git_client.subprocess.run')
    def test_run_git_missing(self, mock_run):
        mock_run.side_effect = FileNotFoundError("git")
        self.assertEqual(self.client._run(['--version'])[2], -1)

    def test_is_git_repo_layouts(self):
        with TemporaryDirectory() as tmp:
            root = Path(tmp)
            self.assertFalse(self.client.is_git_repo(tmp))

            # A stray HEAD file alone is not a repository
            (root / "HEAD").write_text("ref: refs/heads/main\n")
            self.assertFalse(self.client.is_git_repo(tmp))

            (root / "objects").mkdir()
            (root / "refs").mkdir()
            self.assertTrue(self.client.is_git_repo(tmp))

    def test_is_git_repo_work_tree(self):
        with TemporaryDirectory() as tmp:
            (Path(tmp) / ".git").mkdir()
            self.assertTrue(self.client.is_git_repo(tmp))


class TestGitRemote(unittest.TestCase):
    """Test the GitRemote collaborator"""

    def setUp(self):
        self.client = MagicMock(spec=GitClient)
        self.client.ls_remote.return_value = parse_ls_remote(LS_REMOTE_OUTPUT)
        self.remote = GitRemote("origin", cwd="/tmp/repo", client=self.client)

    def test_list_references(self):
        snapshot = self.remote.list_references()
        self.assertIsInstance(snapshot, RemoteReferenceSnapshot)
        self.assertEqual(len(snapshot), 4)
        self.client.ls_remote.assert_called_once_with("origin", cwd="/tmp/repo")

    def test_default_reference(self):
        self.assertEqual(self.remote.default_reference(), "refs/heads/master")

    def test_each_query_lists_again(self):
        self.remote.list_references()
        self.remote.default_reference()
        self.assertEqual(self.client.ls_remote.call_count, 2)

    def test_errors_propagate(self):
        self.client.ls_remote.side_effect = RemoteAccessError("origin", "boom")
        with self.assertRaises(RemoteAccessError):
            self.remote.list_references()


def _git(*args, cwd):
    subprocess.run(['git', *args], cwd=cwd, check=True, capture_output=True)


@pytest.mark.skipif(shutil.which('git') is None, reason="git not installed")
class TestGitIntegration:
    """Run the real git binary against a throwaway repository."""

    def setup_method(self):
        self.tmp = TemporaryDirectory()
        self.repo = Path(self.tmp.name) / "hello"
        self.repo.mkdir()
        _git('init', '-q', '-b', 'main', cwd=self.repo)
        (self.repo / "README").write_text("hello\n")
        _git('add', 'README', cwd=self.repo)
        _git('-c', 'user.name=Test', '-c', 'user.email=test@example.com',
             'commit', '-q', '-m', 'initial', cwd=self.repo)
        _git('branch', 'feature/x', cwd=self.repo)
        _git('tag', 'v1', cwd=self.repo)

    def teardown_method(self):
        self.tmp.cleanup()

    def test_lists_local_repository(self):
        remote = GitRemote(str(self.repo))
        snapshot = remote.list_references()
        names = [ref.name for ref in snapshot]

        assert "refs/heads/main" in names
        assert "refs/heads/feature/x" in names
        assert "refs/tags/v1" in names
        assert remote.default_reference() == "refs/heads/main"

    def test_is_git_repo(self):
        client = GitClient()
        assert client.is_git_repo(str(self.repo))
        assert not client.is_git_repo(self.tmp.name)

    def test_missing_repository(self):
        remote = GitRemote(str(Path(self.tmp.name) / "missing"))
        with pytest.raises(RemoteAccessError):
            remote.list_references()

    def test_resolves_against_real_listing(self):
        from refwatch.target import resolve_target_ref
        from refwatch.watch import WatchMatcher

        remote = GitRemote(str(self.repo))
        matcher = WatchMatcher.compile(["refs/heads/main"], ["^refs/heads/feature/"])

        assert matcher.resolve(remote.list_references()) == {
            "refs/heads/main", "refs/heads/feature/x"
        }
        assert resolve_target_ref(None, remote) == "refs/heads/main"
        assert resolve_target_ref("refs/tags/v1", remote) == "refs/tags/v1"
