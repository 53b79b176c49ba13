"""Filtering of the dependency graph that never loses track of sizes."""

from __future__ import annotations

from typing import Callable, Dict, List, Set

import rustworkx as rx
from rustworkx.visit import DFSVisitor, PruneSearch

from ..depgraph import DepGraph, new_graph
from ..logging import get_logger
from ..models import Node, NodeDescription, Reachability

_LOGGER = get_logger("reduction.keep")

Predicate = Callable[[Node], bool]


def keep_reachable(di: DepGraph) -> DepGraph:
    """Create a new graph retaining only the nodes reachable from the root."""
    graph = di.graph
    new = new_graph()
    new_ids: Dict[int, int] = {}
    for idx in sorted(di.reachable_nodes()):
        new_ids[idx] = new.add_node(graph[idx])

    for source, target in graph.edge_list():
        if source in new_ids and target in new_ids:
            new.add_edge(new_ids[source], new_ids[target], None)

    return DepGraph.from_graph(new, new_ids[di.root], Reachability.CONNECTED)


class _Frontier(DFSVisitor):
    """Records what a traversal from ``start`` meets up to the next boundary nodes."""

    def __init__(self, start: int, boundary: Set[int]) -> None:
        self.start = start
        self.boundary = boundary
        self.hits: List[int] = []
        self.crossed: List[int] = []

    def discover_vertex(self, v: int, t: int) -> None:
        if v == self.start:
            return
        if v in self.boundary:
            self.hits.append(v)
            raise PruneSearch
        self.crossed.append(v)


def keep(di: DepGraph, predicate: Predicate) -> DepGraph:
    """Create a new graph retaining only the nodes satisfying ``predicate``.

    Dropped nodes are merged into an arbitrary retained ancestor: their name
    is lost but their size is added to the ancestor's. Gc roots with at least
    one retained descendant are kept as well; the other ones, and the size
    gathered below them, are merged into a single ``{filtered out}`` root.

    ``predicate`` is called at most once per node and never on the
    designated root. Unreachable nodes are filtered like the others but stay
    unreachable: dropped ones no retained node absorbs end up in a second
    ``{filtered out}`` node without parent, so the total size is unchanged.
    """
    graph = di.graph
    reachable = di.reachable_nodes()
    roots = set(di.roots())

    new = new_graph()
    new_root = new.add_node(graph[di.root])
    # ids of nodes put in ``new``
    new_ids: Dict[int, int] = {di.root: new_root}
    # roots failing the predicate, added on demand when one of their
    # descendants is kept
    pending: Set[int] = set()
    # kept nodes and roots
    boundary: List[int] = []

    for idx in graph.node_indices():
        if idx == di.root:
            continue
        kept = predicate(graph[idx])
        if not (kept or idx in roots):
            continue
        boundary.append(idx)
        if kept:
            new_ids[idx] = new.add_node(graph[idx])
            if idx in roots:
                new.add_edge(new_root, new_ids[idx], None)
        else:
            pending.add(idx)

    # reachable sizes must only be absorbed by reachable nodes
    boundary.sort(key=lambda idx: (idx not in reachable, idx))
    # the designated root is never crossed either
    boundary_set = set(boundary) | {di.root}
    # size folded into each boundary node, applied once all are visited
    absorbed_into: Dict[int, int] = {}
    absorbed: Set[int] = set()

    def materialize(idx: int) -> int:
        if idx in pending:
            pending.discard(idx)
            new_ids[idx] = new.add_node(graph[idx])
            new.add_edge(new_root, new_ids[idx], None)
        return new_ids[idx]

    for old in boundary:
        frontier = _Frontier(old, boundary_set)
        rx.dfs_search(graph, [old], frontier)
        for child in frontier.hits:
            # a root not materialized yet keeps its own size
            if child in new_ids:
                new.add_edge(materialize(old), new_ids[child], None)
        for child in frontier.crossed:
            if child not in absorbed:
                absorbed.add(child)
                absorbed_into[old] = absorbed_into.get(old, 0) + graph[child].size

    for old, extra in absorbed_into.items():
        if old in new_ids:
            new_idx = new_ids[old]
            new[new_idx] = new[new_idx].with_size(new[new_idx].size + extra)

    # to keep the size unchanged, remaining roots become one dummy root
    remaining_size = sum(graph[idx].size + absorbed_into.get(idx, 0) for idx in pending)
    if remaining_size > 0:
        filtered_out = new.add_node(Node(NodeDescription.filtered_out(), remaining_size))
        new.add_edge(new_root, filtered_out, None)

    stray = [
        idx
        for idx in graph.node_indices()
        if idx not in new_ids and idx not in pending and idx not in absorbed
    ]
    stray_size = sum(graph[idx].size for idx in stray)
    if stray_size > 0:
        new.add_node(Node(NodeDescription.filtered_out(), stray_size))

    connected = stray_size == 0 and reachable.issuperset(new_ids)
    _LOGGER.debug(
        "Kept %d of %d nodes, %d roots and %d unreachable nodes filtered out",
        new.num_nodes(),
        graph.num_nodes(),
        len(pending),
        len(stray),
    )
    return DepGraph.from_graph(
        new,
        new_root,
        Reachability.CONNECTED if connected else Reachability.DISCONNECTED,
    )


def min_size_for_biggest(di: DepGraph, count: int) -> int:
    """Return the size threshold keeping approximately the ``count`` biggest nodes."""
    if count <= 0 or count >= di.node_count():
        return 0
    sizes = sorted(node.size for node in di.graph.nodes())
    return sizes[len(sizes) - count]


__all__ = ["Predicate", "keep", "keep_reachable", "min_size_for_biggest"]
