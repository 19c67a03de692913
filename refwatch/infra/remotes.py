"""
Remote collaborator selection for refwatch.

Picks the collaborator that lists a repository's references:
- ``github:owner/name`` URIs use the GitHub REST API
- a configured checkout that is already a git repository is queried
  through its named remote, so its URL rewrites and credentials apply
- anything else is handed to ``git ls-remote`` as a URL or path
"""

import os
import logging
from typing import Any, Callable, Dict, Optional, Union

from ..config import RepositoryConfiguration, parse_github_uri
from .git_client import GitClient, GitRemote
from .github_client import GitHubClient, GitHubRemote

logger = logging.getLogger(__name__)

Remote = Union[GitRemote, GitHubRemote]


def remote_for(
    repo: RepositoryConfiguration,
    git_client: Optional[GitClient] = None,
    github_client: Optional[GitHubClient] = None
) -> Remote:
    """
    Build the remote collaborator for a repository.

    Args:
        repo: Repository configuration
        git_client: GitClient to share between git remotes
        github_client: GitHubClient to share between GitHub remotes
    """
    github = parse_github_uri(repo.uri)
    if github is not None:
        owner, name = github
        return GitHubRemote(owner, name, client=github_client)

    git_client = git_client or GitClient()
    if repo.checkout_path:
        checkout = os.path.expanduser(repo.checkout_path)
        if git_client.is_git_repo(checkout):
            logger.debug(f"Querying {repo.name} through remote {repo.remote} of {checkout}")
            return GitRemote(repo.remote, cwd=checkout, client=git_client)

    return GitRemote(repo.uri, client=git_client)


def remote_factory_from_config(config: Dict[str, Any]) -> Callable[[RepositoryConfiguration], Remote]:
    """
    A remote_for that shares clients built from the ``general`` and
    ``github`` configuration sections.
    """
    general = config.get('general', {})
    github = config.get('github', {})

    git_client = GitClient(timeout=general.get('git_timeout_seconds', 30))
    github_client = GitHubClient(
        token=github.get('token') or None,
        max_retries=github.get('max_retries', 3),
    )

    def factory(repo: RepositoryConfiguration) -> Remote:
        return remote_for(repo, git_client=git_client, github_client=github_client)

    return factory
