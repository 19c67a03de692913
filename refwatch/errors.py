"""
Error types for refwatch.

Every failure the resolution core can report is one of a closed set of
exception classes with structured fields, so callers branch on the type
rather than on message text:

- ConfigError / InvalidPatternError: raised while compiling configuration
- ResolveError / TargetNotFoundError / NoDefaultHeadError: raised per cycle
  when the target reference cannot be resolved
- RemoteQueryError: a remote collaborator failed; wraps the original error
- RemoteAccessError: raised by the bundled git and GitHub collaborators
"""

from typing import Optional

from .exit_codes import (
    GENERAL_ERROR,
    NO_REPOS_FOUND,
    PARTIAL_SUCCESS,
    CONFIG_ERROR,
    NETWORK_ERROR,
    RESOLVE_ERROR,
)


class RefwatchError(Exception):
    """
    Base class for all refwatch errors.

    Carries the exit code the CLI should terminate with.
    """
    exit_code = GENERAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(RefwatchError):
    """Raised when there's a configuration error."""
    exit_code = CONFIG_ERROR


class InvalidPatternError(ConfigError):
    """Raised when a watch pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid watch pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class ResolveError(RefwatchError):
    """Raised when a reference cannot be resolved against the remote."""
    exit_code = RESOLVE_ERROR


class TargetNotFoundError(ResolveError):
    """The configured target reference is not advertised by the remote."""

    def __init__(self, name: str):
        super().__init__(f"Could not find {name} on remote")
        self.name = name


class NoDefaultHeadError(ResolveError):
    """No target was configured and the remote reports no default HEAD."""

    def __init__(self):
        super().__init__("Could not find a default HEAD on remote")


class RemoteQueryError(ResolveError):
    """
    A remote collaborator failed while answering a query.

    The original exception is kept untouched as ``cause`` (and as
    ``__cause__`` when raised with ``from``); ``operation`` names the
    query that was being attempted.
    """
    exit_code = NETWORK_ERROR

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"Remote query '{operation}' failed: {cause}")
        self.operation = operation
        self.cause = cause


class RemoteAccessError(RefwatchError):
    """Raised by the bundled remote clients when git or the API fails."""
    exit_code = NETWORK_ERROR

    def __init__(self, remote: str, detail: Optional[str] = None):
        message = f"Could not query remote {remote}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.remote = remote
        self.detail = detail


class NoReposFoundError(RefwatchError):
    """Raised when no configured repositories match the given names."""
    exit_code = NO_REPOS_FOUND

    def __init__(self, message: str = "No repositories configured"):
        super().__init__(message)


class PartialSuccessError(RefwatchError):
    """Raised when some repositories resolve and some do not."""
    exit_code = PARTIAL_SUCCESS

    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message)
        self.succeeded = succeeded
        self.failed = failed
