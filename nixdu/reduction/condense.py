"""Quotient of the dependency graph by the set of dependent gc roots."""

from __future__ import annotations

from typing import Dict, List

import rustworkx as rx
from rustworkx.visit import BFSVisitor

from ..depgraph import DepGraph, new_graph
from ..logging import get_logger
from ..models import Reachability

_LOGGER = get_logger("reduction.condense")


def condense(di: DepGraph) -> DepGraph:
    """Compute a sort of condensation of the graph.

    Let ``roots(v)`` be the set of gc roots depending transitively on ``v``.
    For an input graph ``G = (V, E)`` this returns ``(V', E')`` where ``V'``
    is the quotient of the reachable part of ``V`` by "same image by
    ``roots``", and an edge is in ``E'`` when some vertices of the source and
    target classes have a corresponding edge in ``G``.

    Each class is represented by its first vertex in breadth-first order
    from the designated root, which keeps its description and carries the
    size of the whole class. The designated root is its own representative
    and stays the root of the result.

    Complexity, with n vertices, m edges and r roots: n.ln(r)+m in space and
    n.ln(n)+m in time.
    """
    graph = di.graph
    labels = _label_with_roots(di)

    new = new_graph()
    # set of roots (as a bit mask) => index in ``new``
    new_ids: Dict[int, int] = {}
    # old index => index in ``new``, only for reachable vertices
    class_of: Dict[int, int] = {}
    sizes: Dict[int, int] = {}

    for idx in _bfs_order(di.graph, di.root):
        label = labels.get(idx, 0)
        new_idx = new_ids.get(label)
        if new_idx is None:
            new_idx = new.add_node(graph[idx])
            new_ids[label] = new_idx
            sizes[new_idx] = 0
        sizes[new_idx] += graph[idx].size
        class_of[idx] = new_idx

    for new_idx, size in sizes.items():
        new[new_idx] = new[new_idx].with_size(size)

    for source, target in graph.edge_list():
        new_source = class_of.get(source)
        new_target = class_of.get(target)
        # unreachable vertices don't have a counterpart in the new graph
        if new_source is None or new_target is None or new_source == new_target:
            continue
        new.add_edge(new_source, new_target, None)

    _LOGGER.debug(
        "Condensed %d vertices into %d classes",
        len(class_of),
        new.num_nodes(),
    )
    return DepGraph.from_graph(new, class_of[di.root], Reachability.CONNECTED)


def _label_with_roots(di: DepGraph) -> Dict[int, int]:
    """Label each vertex with the bit mask of the roots it is a dependency of."""
    labels: Dict[int, int] = {}
    for position, root in enumerate(di.roots()):
        bit = 1 << position
        labels[root] = labels.get(root, 0) | bit
        for idx in rx.descendants(di.graph, root):
            labels[idx] = labels.get(idx, 0) | bit
    return labels


class _DiscoveryOrder(BFSVisitor):
    def __init__(self) -> None:
        self.order: List[int] = []

    def discover_vertex(self, v: int) -> None:
        self.order.append(v)


def _bfs_order(graph: rx.PyDiGraph, start: int) -> List[int]:
    """Return the vertices reachable from ``start`` in breadth-first order."""
    visitor = _DiscoveryOrder()
    rx.bfs_search(graph, [start], visitor)
    return visitor.order


__all__ = ["condense"]
