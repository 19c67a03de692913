"""
refwatch - Track the remote references you keep up to date.

refwatch decides, on every polling cycle, which of the references an
operator watches currently exist on a remote, and which reference merges
should be created against. Fetching, merging and pushing are left to the
merge engine that consumes its output.

Quick Start:
    import refwatch

    # Compile watch rules once
    matcher = refwatch.WatchMatcher.compile(
        ["refs/heads/master"],
        [r"^refs/pull/\\d+/head$"],
    )

    # Every cycle: list the remote and resolve
    remote = refwatch.GitRemote("https://github.com/octo/hello.git")
    snapshot = remote.list_references()
    watched = matcher.resolve(snapshot)
    target = refwatch.resolve_target_ref(None, remote)

Domain Objects:
    RemoteReference - A reference advertised by a remote (maybe symbolic)
    RemoteReferenceSnapshot - One listing of a remote
    CycleResult - Outcome of one polling cycle for one repository

Core:
    WatchMatcher - Compiled exact names and patterns
    resolve_target_ref - Configured target or remote HEAD

Services:
    ResolutionService - Polling cycles across repositories
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    RemoteReference,
    RemoteReferenceSnapshot,
    RemoteHandle,
    flatten_references,
    CycleStatus,
    CycleResult,
    PollSummary,
)

# Resolution core
from .watch import WatchSpecification, WatchMatcher, PatternSet
from .target import TargetReferenceConfiguration, TargetResolver, resolve_target_ref

# Errors
from .errors import (
    RefwatchError,
    ConfigError,
    InvalidPatternError,
    ResolveError,
    TargetNotFoundError,
    NoDefaultHeadError,
    RemoteQueryError,
    RemoteAccessError,
)

# Remote collaborators
from .infra import GitClient, GitRemote, GitHubClient, GitHubRemote

# Services (for polling)
from .services import ResolutionService

# Configuration
from .config import load_config, save_config, RepositoryConfiguration, load_repositories

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RemoteReference",
    "RemoteReferenceSnapshot",
    "RemoteHandle",
    "flatten_references",
    "CycleStatus",
    "CycleResult",
    "PollSummary",
    # Resolution core
    "WatchSpecification",
    "WatchMatcher",
    "PatternSet",
    "TargetReferenceConfiguration",
    "TargetResolver",
    "resolve_target_ref",
    # Errors
    "RefwatchError",
    "ConfigError",
    "InvalidPatternError",
    "ResolveError",
    "TargetNotFoundError",
    "NoDefaultHeadError",
    "RemoteQueryError",
    "RemoteAccessError",
    # Remote collaborators
    "GitClient",
    "GitRemote",
    "GitHubClient",
    "GitHubRemote",
    # Services
    "ResolutionService",
    # Configuration
    "load_config",
    "save_config",
    "RepositoryConfiguration",
    "load_repositories",
]
