"""Dependency graph of the store and its size bookkeeping."""

from __future__ import annotations

import copy
from typing import Callable, Iterator, List, Optional, Set, Tuple

import rustworkx as rx

from .logging import get_logger
from .models import (
    DEFAULT_CLASSIFIER,
    Classifier,
    Node,
    Reachability,
    SizeMetadata,
)

_LOGGER = get_logger("depgraph")


class StoreReadError(RuntimeError):
    """Raised when the store reader reports a nonzero status."""

    def __init__(self, status: int) -> None:
        super().__init__(f"Could not read from store (status {status})")
        self.status = status


def new_graph() -> rx.PyDiGraph:
    """Return an empty graph where repeated edges collapse to one."""
    return rx.PyDiGraph(multigraph=False, check_cycle=False)


class GraphHandle:
    """Ingestion handle handed to the store reader.

    Nodes are only ever appended, so the returned indices stay valid for the
    lifetime of the graph.
    """

    def __init__(self, classifier: Classifier | None = None) -> None:
        self.graph = new_graph()
        self._classifier = classifier or DEFAULT_CLASSIFIER

    def add_node(self, raw_path: bytes, is_root: bool, size: int) -> int:
        description = self._classifier.classify(raw_path, is_root)
        return self.graph.add_node(Node(description, size))

    def add_edge(self, source: int, target: int) -> None:
        if source == target:
            return
        count = self.graph.num_nodes()
        for idx in (source, target):
            if not 0 <= idx < count:
                raise IndexError(f"unknown node index {idx}")
        self.graph.add_edge(source, target, None)


Populate = Callable[[GraphHandle, Optional[bytes]], int]


class DepGraph:
    """A dependency graph, its designated root and cached size metadata."""

    def __init__(
        self,
        graph: rx.PyDiGraph,
        root: int,
        metadata: SizeMetadata,
    ) -> None:
        if not 0 <= root < graph.num_nodes():
            raise IndexError(f"root index {root} is not in the graph")
        self.graph = graph
        self.root = root
        self.metadata = metadata

    @classmethod
    def build(
        cls,
        populate: Populate,
        root: Optional[bytes] = None,
        classifier: Classifier | None = None,
    ) -> "DepGraph":
        """Return the dependency graph of the store as reported by ``populate``.

        Without an explicit root, a dummy root is added whose children are
        all the gc roots. With one, the reader places it at index 0.
        """
        handle = GraphHandle(classifier)
        status = populate(handle, root)
        if status != 0:
            raise StoreReadError(status)
        graph = handle.graph

        if root is None:
            root_idx = graph.add_node(Node.dummy())
            gc_roots = [
                idx for idx in graph.node_indices() if graph[idx].kind.is_gc_root()
            ]
            for idx in gc_roots:
                graph.add_edge(root_idx, idx, None)
            reachable = Reachability.DISCONNECTED
        else:
            if graph.num_nodes() == 0:
                raise RuntimeError("store reader did not register the requested root")
            root_idx = 0
            reachable = Reachability.CONNECTED

        di = cls(graph, root_idx, SizeMetadata(reachable=reachable))
        di.record_metadata()
        _LOGGER.debug("Recorded metadata %s", di.metadata.sizes[di.metadata.dedup])
        return di

    @classmethod
    def from_graph(
        cls,
        graph: rx.PyDiGraph,
        root: int,
        reachable: Reachability = Reachability.CONNECTED,
    ) -> "DepGraph":
        """Wrap the output of a transformation with freshly recorded metadata."""
        di = cls(graph, root, SizeMetadata(reachable=reachable))
        di.record_metadata()
        return di

    # ------------------------------------------------------------------
    # Queries

    def node(self, idx: int) -> Node:
        return self.graph[idx]

    def nodes(self) -> Iterator[Tuple[int, Node]]:
        for idx in self.graph.node_indices():
            yield idx, self.graph[idx]

    def node_count(self) -> int:
        return self.graph.num_nodes()

    def edge_count(self) -> int:
        return self.graph.num_edges()

    def successors(self, idx: int) -> List[int]:
        return sorted(self.graph.successor_indices(idx))

    def roots(self) -> List[int]:
        """Return the gc roots, the direct children of the designated root."""
        return self.successors(self.root)

    def roots_name(self) -> Set[str]:
        return {self.graph[idx].label() for idx in self.roots()}

    def reachable_nodes(self) -> Set[int]:
        """Return the indices of the root and of all its descendants."""
        reachable = set(rx.descendants(self.graph, self.root))
        reachable.add(self.root)
        return reachable

    def reachable_size(self) -> int:
        """Return the sum of the sizes of all nodes reachable from the root."""
        return sum(self.graph[idx].size for idx in self.reachable_nodes())

    def total_size(self) -> int:
        """Return the sum of the sizes of all nodes."""
        return sum(node.size for node in self.graph.nodes())

    # ------------------------------------------------------------------
    # Metadata

    def record_metadata(self) -> None:
        """Fill the empty cells of the size metadata for the current modes."""
        entry = self.metadata.sizes[self.metadata.dedup]
        if entry[Reachability.CONNECTED] is None:
            entry[Reachability.CONNECTED] = self.reachable_size()
        if (
            self.metadata.reachable is Reachability.DISCONNECTED
            and entry[Reachability.DISCONNECTED] is None
        ):
            entry[Reachability.DISCONNECTED] = self.total_size()

    def check_metadata(self) -> None:
        """Assert that the recorded metadata matches a recomputation."""
        if self.metadata.reachable is Reachability.CONNECTED:
            visited = len(self.reachable_nodes())
            assert visited == self.node_count(), "connected graph has unreachable nodes"
        entry = self.metadata.sizes[self.metadata.dedup]
        connected = entry[Reachability.CONNECTED]
        if connected is not None:
            assert connected == self.reachable_size()
        disconnected = entry[Reachability.DISCONNECTED]
        if disconnected is not None:
            assert disconnected == self.total_size()

    def copy(self) -> "DepGraph":
        return DepGraph(self.graph.copy(), self.root, copy.deepcopy(self.metadata))

    def __repr__(self) -> str:
        return (
            f"DepGraph(nodes={self.node_count()}, edges={self.edge_count()}, "
            f"root={self.root}, reachable={self.metadata.reachable.value})"
        )


__all__ = [
    "DepGraph",
    "GraphHandle",
    "Populate",
    "StoreReadError",
    "new_graph",
]
