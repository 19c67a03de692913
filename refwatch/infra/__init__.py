"""
Infrastructure layer for refwatch.

Contains the remote collaborators that list a remote's references:
- GitClient / GitRemote: ``git ls-remote --symref``
- GitHubClient / GitHubRemote: GitHub REST API

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitRemote, parse_ls_remote
from .github_client import GitHubClient, GitHubRemote, RateLimitStatus
from .remotes import remote_for, remote_factory_from_config, parse_github_uri

__all__ = [
    'GitClient',
    'GitRemote',
    'parse_ls_remote',
    'GitHubClient',
    'GitHubRemote',
    'RateLimitStatus',
    'remote_for',
    'remote_factory_from_config',
    'parse_github_uri',
]
