"""
Target reference resolution for refwatch.

The target reference is the branch that watched references are merged
against. It is either configured explicitly, in which case it is checked
against the remote's listing before any merge work starts, or taken from
the remote's default HEAD.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .domain.reference import RemoteHandle, flatten_references
from .errors import NoDefaultHeadError, RemoteQueryError, TargetNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetReferenceConfiguration:
    """Optional explicitly configured target reference."""
    target_ref: Optional[str] = None


def resolve_target_ref(configured: Optional[str], remote: RemoteHandle) -> str:
    """
    Resolve the reference to create merge commits against.

    The remote is queried on every call; nothing is cached.

    Args:
        configured: Explicit target reference, or None to use the remote HEAD
        remote: Remote collaborator to query

    Returns:
        The configured name unchanged, or the remote's default reference

    Raises:
        TargetNotFoundError: ``configured`` is not advertised by the remote
        NoDefaultHeadError: nothing configured and the remote has no HEAD
        RemoteQueryError: the remote failed to answer
    """
    if configured is not None:
        logger.info(f"Target reference specified: {configured}")
        try:
            references = remote.list_references()
        except Exception as e:
            raise RemoteQueryError('list_references', e) from e

        if configured not in flatten_references(references):
            raise TargetNotFoundError(configured)
        return configured

    try:
        head = remote.default_reference()
    except Exception as e:
        raise RemoteQueryError('default_reference', e) from e

    if head is None:
        raise NoDefaultHeadError()

    logger.info(f"Target reference set to remote HEAD: {head}")
    return head


class TargetResolver:
    """Resolves the target reference for one repository's configuration."""

    def __init__(self, configuration: Optional[TargetReferenceConfiguration] = None):
        self.configuration = configuration or TargetReferenceConfiguration()

    def resolve(self, remote: RemoteHandle) -> str:
        return resolve_target_ref(self.configuration.target_ref, remote)
