"""
Polling cycle result objects for refwatch.

A cycle is one resolution pass for one repository: list the remote's
references, compute the watch set, and resolve the merge target.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class CycleStatus(Enum):
    """Outcome of a single polling cycle."""
    OK = "ok"
    SKIPPED = "skipped"   # Target could not be resolved; merge work skipped
    FAILED = "failed"     # Remote could not be queried


@dataclass
class CycleResult:
    """
    Result of resolving one repository during a polling cycle.

    ``watched`` is sorted so output is stable between cycles even though
    the resolved watch set itself is unordered.
    """
    repository: str
    status: CycleStatus
    watched: Tuple[str, ...] = ()
    target: Optional[str] = None
    reference_count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == CycleStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'repository': self.repository,
            'status': self.status.value,
            'watched': list(self.watched),
            'target': self.target,
            'references': self.reference_count,
            'started_at': self.started_at.isoformat(),
            'duration_seconds': round(self.duration_seconds, 3),
        }
        if self.error:
            result['error'] = self.error
            result['error_type'] = self.error_type
        return result


@dataclass
class PollSummary:
    """Totals for one polling cycle across all repositories."""
    total: int = 0
    ok: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def success(self) -> bool:
        """True if every repository resolved."""
        return self.total == self.ok

    def add_result(self, result: CycleResult) -> None:
        """Add a cycle result and update counts."""
        self.total += 1

        if result.status == CycleStatus.OK:
            self.ok += 1
        elif result.status == CycleStatus.SKIPPED:
            self.skipped += 1
        elif result.status == CycleStatus.FAILED:
            self.failed += 1
