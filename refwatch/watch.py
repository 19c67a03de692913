"""
Watch matching for refwatch.

A WatchSpecification lists the references an operator wants kept up to
date: exact reference names plus regular-expression patterns. It is
compiled once into a WatchMatcher, which is then evaluated against every
remote listing:

    matcher = WatchMatcher.compile(
        ["refs/heads/master"],
        [r"^refs/pull/\\d+/head$"],
    )
    watched = matcher.resolve(snapshot)

Symbolic references are flattened before matching, so an alias such as
HEAD is tracked under the name of the branch it points at.
"""

import logging
import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Pattern, Sequence, Tuple

from .domain.reference import RemoteReference, flatten_references
from .errors import InvalidPatternError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchSpecification:
    """Exact reference names and patterns describing what to track."""
    exact: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'exact', tuple(self.exact))
        object.__setattr__(self, 'patterns', tuple(self.patterns))

    @property
    def is_empty(self) -> bool:
        return not self.exact and not self.patterns


class PatternSet:
    """
    Several regular expressions tested together.

    ``is_match`` reports whether a string matches any pattern in the set,
    not which one. Patterns are joined into a single alternation and
    searched in one pass. Patterns with capture groups are kept apart and
    tried one after another, since joining them would renumber their
    backreferences.
    """

    def __init__(self, patterns: Sequence[str]):
        self.patterns: Tuple[str, ...] = tuple(patterns)

        compiled = []
        for pattern in self.patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise InvalidPatternError(pattern, str(e)) from e
        self._compiled: Tuple[Pattern[str], ...] = tuple(compiled)
        self._combined: Optional[Pattern[str]] = self._combine(self._compiled)

    @staticmethod
    def _combine(compiled: Sequence[Pattern[str]]) -> Optional[Pattern[str]]:
        if not compiled or any(p.groups for p in compiled):
            return None
        try:
            return re.compile('|'.join(f'(?:{p.pattern})' for p in compiled))
        except re.error:
            # Global inline flags such as (?i) are only legal at the start
            return None

    @property
    def combined(self) -> bool:
        """True if the set is evaluated as one joined expression."""
        return self._combined is not None

    def __len__(self) -> int:
        return len(self.patterns)

    def is_match(self, candidate: str) -> bool:
        if self._combined is not None:
            return self._combined.search(candidate) is not None
        return any(p.search(candidate) is not None for p in self._compiled)


class WatchMatcher:
    """
    Compiled, immutable form of a WatchSpecification.

    Safe to share between threads and reuse across polling cycles;
    rebuild it when the configuration changes.
    """

    __slots__ = ('_specification', '_exact', '_pattern_set')

    def __init__(self, specification: WatchSpecification):
        """
        Compile a watch specification.

        Raises:
            InvalidPatternError: if any pattern is not a valid regular
                expression. No matcher is built in that case.
        """
        pattern_set = PatternSet(specification.patterns)
        self._specification = specification
        self._exact: FrozenSet[str] = frozenset(specification.exact)
        self._pattern_set = pattern_set

    @classmethod
    def compile(cls, exact_names: Iterable[str], patterns: Iterable[str]) -> 'WatchMatcher':
        return cls(WatchSpecification(tuple(exact_names), tuple(patterns)))

    @property
    def specification(self) -> WatchSpecification:
        return self._specification

    def __repr__(self) -> str:
        return (
            f"WatchMatcher(exact={list(self._specification.exact)!r}, "
            f"patterns={list(self._specification.patterns)!r})"
        )

    def matches(self, name: str) -> bool:
        """True if ``name`` is an exact watch name or matches a pattern."""
        return name in self._exact or self._pattern_set.is_match(name)

    def resolve(self, references: Iterable[RemoteReference]) -> FrozenSet[str]:
        """
        Compute the set of watched references the remote currently has.

        Args:
            references: A RemoteReferenceSnapshot (or any iterable of
                RemoteReference) listing what the remote advertises

        Returns:
            Flattened reference names that are exact watch names or match
            at least one watch pattern
        """
        remote_names = flatten_references(references)
        available = set(remote_names)

        refs = set()
        for exact in self._specification.exact:
            if exact in available:
                refs.add(exact)
            else:
                logger.debug(f"Watched reference {exact} is not on the remote")

        for name in remote_names:
            if self._pattern_set.is_match(name):
                refs.add(name)

        return frozenset(refs)
