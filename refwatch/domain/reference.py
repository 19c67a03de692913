"""
Remote reference domain objects for refwatch.

A RemoteReferenceSnapshot is one point-in-time listing of every reference
a remote advertises. Symbolic references (such as HEAD) keep the name of
the reference they alias so they can be flattened before matching.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Iterable, Iterator, List, Protocol, Sequence, Tuple

HEAD = "HEAD"


@dataclass(frozen=True)
class RemoteReference:
    """A single reference as advertised by a remote."""
    name: str
    symbolic_target: Optional[str] = None
    object_id: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Remote reference name must not be empty")
        if self.symbolic_target is not None and not self.symbolic_target:
            raise ValueError(f"Symbolic target of {self.name} must not be empty")

    @property
    def is_symbolic(self) -> bool:
        return self.symbolic_target is not None

    def flatten(self) -> str:
        """Name to use when matching: the alias target for symbolic refs."""
        if self.symbolic_target is not None:
            return self.symbolic_target
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        result = {'name': self.name}
        if self.symbolic_target is not None:
            result['symbolic_target'] = self.symbolic_target
        if self.object_id is not None:
            result['object_id'] = self.object_id
        return result


def flatten_references(references: Iterable[RemoteReference]) -> List[str]:
    """
    Flatten a listing into the names used for matching.

    Returns one name per input reference, in order and without
    deduplication: the symbolic target for aliases, the reference's own
    name otherwise.

    Example:
        >>> flatten_references([
        ...     RemoteReference("HEAD", symbolic_target="refs/heads/master"),
        ...     RemoteReference("refs/heads/master"),
        ... ])
        ['refs/heads/master', 'refs/heads/master']
    """
    return [reference.flatten() for reference in references]


@dataclass(frozen=True)
class RemoteReferenceSnapshot:
    """
    Ordered, immutable listing of the references a remote advertises.

    Built fresh for every polling cycle and discarded once resolution
    for that cycle completes.
    """
    references: Tuple[RemoteReference, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any sequence but store a tuple so the snapshot stays immutable
        if not isinstance(self.references, tuple):
            object.__setattr__(self, 'references', tuple(self.references))

    @classmethod
    def of(cls, *references: RemoteReference) -> 'RemoteReferenceSnapshot':
        return cls(tuple(references))

    def __iter__(self) -> Iterator[RemoteReference]:
        return iter(self.references)

    def __len__(self) -> int:
        return len(self.references)

    def flatten(self) -> List[str]:
        """Flattened names, one per entry (see flatten_references)."""
        return flatten_references(self.references)

    def contains(self, name: str) -> bool:
        """True if ``name`` equals any entry's flattened name."""
        return name in self.flatten()

    def get(self, name: str) -> Optional[RemoteReference]:
        """First entry advertised under ``name``, or None."""
        for reference in self.references:
            if reference.name == name:
                return reference
        return None

    def default_reference(self) -> Optional[str]:
        """Flattened target of the HEAD entry, if the remote advertised one."""
        head = self.get(HEAD)
        if head is None or not head.is_symbolic:
            return None
        return head.flatten()

    def to_dict(self) -> Dict[str, Any]:
        return {'references': [reference.to_dict() for reference in self.references]}


class RemoteHandle(Protocol):
    """
    Capability a remote collaborator provides to the resolution core.

    Implementations may block on the network and raise their own errors;
    the core wraps those errors without interpreting them.
    """

    def list_references(self) -> Sequence[RemoteReference]:
        ...

    def default_reference(self) -> Optional[str]:
        ...
