"""
Service layer for refwatch.

Contains the polling logic that orchestrates the resolution core and the
remote collaborators:
- ResolutionService: Per-repository polling cycles

Services are the primary API for commands to use.
"""

from .resolution_service import ResolutionService, take_snapshot

__all__ = [
    'ResolutionService',
    'take_snapshot',
]
