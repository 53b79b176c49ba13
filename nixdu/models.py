"""Core data models describing store objects in the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Iterable, Optional, Tuple


class ClassificationError(ValueError):
    """Raised when a store object cannot be mapped to a known node kind."""


class NodeKind(IntEnum):
    """Semantic kind of a node; declaration order is the sort order."""

    PATH = 0
    LINK = 1
    DUMMY = 2
    FILTERED_OUT = 3
    MEMORY = 4
    TEMPORARY = 5
    TRANSIENT = 6
    SHARED = 7

    def is_gc_root(self) -> bool:
        return self in _GC_ROOT_KINDS

    def is_transient(self) -> bool:
        return self in _TRANSIENT_KINDS


_GC_ROOT_KINDS = frozenset(
    {NodeKind.LINK, NodeKind.MEMORY, NodeKind.TEMPORARY, NodeKind.TRANSIENT}
)
_TRANSIENT_KINDS = frozenset({NodeKind.MEMORY, NodeKind.TEMPORARY})
_PAYLOAD_KINDS = frozenset(
    {NodeKind.PATH, NodeKind.LINK, NodeKind.MEMORY, NodeKind.TEMPORARY, NodeKind.SHARED}
)

_FIXED_NAMES = {
    NodeKind.DUMMY: b"{dummy}",
    NodeKind.FILTERED_OUT: b"{filtered out}",
    NodeKind.TRANSIENT: b"{transient}",
}

SHARED_PREFIX = b"shared:"


@dataclass(frozen=True, order=True)
class NodeDescription:
    """Tagged description of a store object.

    Path, Link, Memory and Temporary carry the raw path, Shared carries the
    identifier of a set of deduplicated inodes, the synthetic kinds carry
    nothing.
    """

    kind: NodeKind
    payload: Optional[bytes] = None

    def __post_init__(self) -> None:
        has_payload = self.payload is not None
        if has_payload != (self.kind in _PAYLOAD_KINDS):
            raise ValueError(
                f"{self.kind.name} description {'requires' if not has_payload else 'takes no'} payload"
            )

    @classmethod
    def store_path(cls, path: bytes) -> "NodeDescription":
        return cls(NodeKind.PATH, path)

    @classmethod
    def link(cls, path: bytes) -> "NodeDescription":
        return cls(NodeKind.LINK, path)

    @classmethod
    def memory(cls, path: bytes) -> "NodeDescription":
        return cls(NodeKind.MEMORY, path)

    @classmethod
    def temporary(cls, path: bytes) -> "NodeDescription":
        return cls(NodeKind.TEMPORARY, path)

    @classmethod
    def shared(cls, identifier: bytes) -> "NodeDescription":
        return cls(NodeKind.SHARED, identifier)

    @classmethod
    def dummy(cls) -> "NodeDescription":
        return cls(NodeKind.DUMMY)

    @classmethod
    def filtered_out(cls) -> "NodeDescription":
        return cls(NodeKind.FILTERED_OUT)

    @classmethod
    def transient(cls) -> "NodeDescription":
        return cls(NodeKind.TRANSIENT)

    def name(self) -> bytes:
        """Return ``blah`` when the path is ``/nix/store/<hash>-blah``.

        Malformed paths fall back to a bigger slice of the path.
        """
        payload = self.payload or b""
        if self.kind is NodeKind.PATH:
            slash = payload.rfind(b"/")
            if slash < 0:
                return payload
            tail = payload[slash + 1 :]
            dash = tail.find(b"-")
            if dash < 0:
                return tail
            return tail[dash + 1 :]
        if self.kind is NodeKind.SHARED:
            return SHARED_PREFIX + payload
        if self.payload is not None:
            return self.payload
        return _FIXED_NAMES[self.kind]

    def path(self) -> Optional[bytes]:
        return self.payload

    def label(self) -> str:
        return self.name().decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        path = (self.payload or b"").decode("utf-8", errors="replace")
        return f"{self.kind.name.title().replace('_', '')}({path})"


@dataclass(frozen=True, order=True)
class Node:
    """A store object and its size in bytes."""

    description: NodeDescription
    size: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.size < 1 << 64:
            raise ValueError(f"node size out of range: {self.size}")

    @classmethod
    def dummy(cls) -> "Node":
        return cls(NodeDescription.dummy(), 0)

    @property
    def kind(self) -> NodeKind:
        return self.description.kind

    def name(self) -> bytes:
        return self.description.name()

    def label(self) -> str:
        return self.description.label()

    def with_size(self, size: int) -> "Node":
        return replace(self, size=size)

    def __repr__(self) -> str:
        return f"N({self.description!r}, size={self.size})"


@dataclass(frozen=True)
class Classifier:
    """Maps raw store object paths reported by the store to node descriptions.

    The bracketed markers changed across store daemon versions: ``{memory:N}``
    predates the ``/proc`` paths and ``{lsof}`` used for in-memory roots, and
    ``{censored}`` hides roots of other users.
    """

    memory_prefixes: Tuple[bytes, ...] = (b"/proc/",)
    memory_marker_prefixes: Tuple[bytes, ...] = (b"{memory:",)
    memory_literals: Tuple[bytes, ...] = (b"{lsof}", b"{censored}")
    temporary_prefixes: Tuple[bytes, ...] = (b"{temp:",)

    def extended(
        self,
        *,
        memory_prefixes: Iterable[bytes] = (),
        memory_marker_prefixes: Iterable[bytes] = (),
        memory_literals: Iterable[bytes] = (),
        temporary_prefixes: Iterable[bytes] = (),
    ) -> "Classifier":
        """Return a classifier recognising extra markers on top of these ones."""
        return Classifier(
            memory_prefixes=_merge(self.memory_prefixes, memory_prefixes),
            memory_marker_prefixes=_merge(self.memory_marker_prefixes, memory_marker_prefixes),
            memory_literals=_merge(self.memory_literals, memory_literals),
            temporary_prefixes=_merge(self.temporary_prefixes, temporary_prefixes),
        )

    def classify(self, path: bytes, is_root: bool) -> NodeDescription:
        if path.startswith(b"/"):
            if path.startswith(self.memory_prefixes):
                return NodeDescription.memory(path)
            if is_root:
                return NodeDescription.link(path)
            return NodeDescription.store_path(path)
        if path.startswith(self.memory_marker_prefixes) or path in self.memory_literals:
            return NodeDescription.memory(path)
        if path.startswith(self.temporary_prefixes):
            return NodeDescription.temporary(path)
        raise ClassificationError(
            f"Unknown store path type: {path.decode('utf-8', errors='replace')!r}"
        )


def _merge(base: Tuple[bytes, ...], extra: Iterable[bytes]) -> Tuple[bytes, ...]:
    merged = list(base)
    for item in extra:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


DEFAULT_CLASSIFIER = Classifier()


class Reachability(Enum):
    """Whether all nodes are reachable from the root."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class DedupAwareness(Enum):
    """Whether deduplicated nodes are counted several times."""

    AWARE = "aware"
    UNAWARE = "unaware"


@dataclass
class SizeMetadata:
    """Cached aggregate sizes of a graph snapshot."""

    reachable: Reachability
    dedup: DedupAwareness = DedupAwareness.UNAWARE
    sizes: dict = field(
        default_factory=lambda: {
            dedup: {reach: None for reach in Reachability} for dedup in DedupAwareness
        }
    )

    def get(self, reachable: Reachability, dedup: DedupAwareness | None = None) -> Optional[int]:
        return self.sizes[dedup or self.dedup][reachable]


__all__ = [
    "ClassificationError",
    "Classifier",
    "DEFAULT_CLASSIFIER",
    "DedupAwareness",
    "Node",
    "NodeDescription",
    "NodeKind",
    "Reachability",
    "SizeMetadata",
]
