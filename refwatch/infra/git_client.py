"""
Git client infrastructure for refwatch.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Only read-only queries against remotes are issued here; fetching,
merging and pushing belong to the merge engine that consumes refwatch's
output.
"""

import subprocess
import logging
from pathlib import Path
from typing import Optional, List, Tuple

from ..domain.reference import RemoteReference, RemoteReferenceSnapshot
from ..errors import RemoteAccessError

logger = logging.getLogger(__name__)

PEELED_SUFFIX = "^{}"
SYMREF_PREFIX = "ref: "


def parse_ls_remote(output: str) -> List[RemoteReference]:
    """
    Parse the output of ``git ls-remote --symref``.

    Symbolic entries (``ref: <target>\\t<name>``) become references with a
    symbolic_target; the object id line that follows them fills in their
    object_id. Peeled tag entries are dropped.

    Args:
        output: Raw stdout from git

    Returns:
        References in the order the remote advertised them
    """
    entries = {}  # name -> [symbolic_target, object_id]; dicts keep insertion order

    for line in output.splitlines():
        line = line.strip()
        if not line or '\t' not in line:
            continue

        value, name = line.split('\t', 1)
        name = name.strip()
        if not name or name.endswith(PEELED_SUFFIX):
            continue

        entry = entries.setdefault(name, [None, None])
        if value.startswith(SYMREF_PREFIX):
            entry[0] = value[len(SYMREF_PREFIX):].strip()
        else:
            entry[1] = value.strip()

    return [
        RemoteReference(name=name, symbolic_target=target, object_id=object_id)
        for name, (target, object_id) in entries.items()
    ]


class GitClient:
    """
    Abstraction over git commands.

    Example:
        client = GitClient()
        refs = client.ls_remote("https://github.com/octo/hello.git")
        for ref in refs:
            print(ref.name)
    """

    def __init__(self, timeout: int = 30):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 30)
        """
        self.timeout = timeout

    def _run(self, args: List[str], cwd: Optional[str] = None) -> Tuple[str, str, int]:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            cwd: Working directory

        Returns:
            Tuple of (stdout, stderr, returncode); returncode is -1 when git
            could not be run or timed out
        """
        cmd = ['git'] + list(args)
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            return '', f"timed out after {self.timeout}s", -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            return '', str(e), -1

        return result.stdout or '', result.stderr or '', result.returncode

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository (work tree or bare)."""
        repo = Path(path)
        if (repo / ".git").exists():
            return True
        # Bare repository layout
        return (
            (repo / "HEAD").is_file()
            and (repo / "objects").is_dir()
            and (repo / "refs").is_dir()
        )

    def ls_remote(self, remote: str, cwd: Optional[str] = None) -> List[RemoteReference]:
        """
        List the references a remote advertises, including symbolic ones.

        Args:
            remote: Remote URL or path, or a remote name when ``cwd`` is a
                repository that defines it
            cwd: Repository to run in

        Returns:
            List of RemoteReference in advertised order

        Raises:
            RemoteAccessError: git failed or timed out
        """
        stdout, stderr, code = self._run(['ls-remote', '--symref', remote], cwd=cwd)
        if code != 0:
            raise RemoteAccessError(remote, stderr.strip() or f"git exited with status {code}")

        references = parse_ls_remote(stdout)
        logger.debug(f"{remote} advertises {len(references)} references")
        return references


class GitRemote:
    """
    Remote collaborator backed by ``git ls-remote``.

    Every query lists the remote afresh.

    Example:
        remote = GitRemote("https://github.com/octo/hello.git")
        snapshot = remote.list_references()
        print(remote.default_reference())  # refs/heads/main
    """

    def __init__(
        self,
        location: str,
        cwd: Optional[str] = None,
        client: Optional[GitClient] = None
    ):
        """
        Args:
            location: Remote URL, path, or remote name (with ``cwd``)
            cwd: Local repository defining ``location`` as a remote
            client: GitClient to use (default: new GitClient)
        """
        self.location = location
        self.cwd = cwd
        self.client = client or GitClient()

    def __repr__(self) -> str:
        return f"GitRemote({self.location!r})"

    def list_references(self) -> RemoteReferenceSnapshot:
        return RemoteReferenceSnapshot(tuple(self.client.ls_remote(self.location, cwd=self.cwd)))

    def default_reference(self) -> Optional[str]:
        return self.list_references().default_reference()
