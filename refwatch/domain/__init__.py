"""
Domain layer for refwatch.

Contains pure domain objects with no I/O or side effects:
- RemoteReference: A reference advertised by a remote, possibly symbolic
- RemoteReferenceSnapshot: One point-in-time listing of a remote
- CycleResult: Outcome of resolving one repository in a polling cycle

These objects are immutable where possible and provide
serialization methods for JSONL output.
"""

from .reference import (
    HEAD,
    RemoteReference,
    RemoteReferenceSnapshot,
    RemoteHandle,
    flatten_references,
)
from .cycle import CycleStatus, CycleResult, PollSummary

__all__ = [
    'HEAD',
    'RemoteReference',
    'RemoteReferenceSnapshot',
    'RemoteHandle',
    'flatten_references',
    'CycleStatus',
    'CycleResult',
    'PollSummary',
]
