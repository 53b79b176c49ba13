"""Gathering of in-memory and temporary roots under one synthetic root."""

from __future__ import annotations

from ..depgraph import DepGraph
from ..logging import get_logger
from ..models import Node, NodeDescription

_LOGGER = get_logger("reduction.transient")


def merge_transient_roots(di: DepGraph) -> DepGraph:
    """Merge all the in-memory and temporary roots into one root.

    Only direct children of the designated root are moved; the rest of the
    graph is copied unchanged.
    """
    graph = di.graph.copy()
    transient = [idx for idx in di.roots() if graph[idx].kind.is_transient()]
    if transient:
        fake_root = graph.add_node(Node(NodeDescription.transient(), 0))
        graph.add_edge(di.root, fake_root, None)
        for idx in transient:
            graph.remove_edge(di.root, idx)
            graph.add_edge(fake_root, idx, None)
    _LOGGER.debug("Merged %d transient roots", len(transient))
    return DepGraph.from_graph(graph, di.root, di.metadata.reachable)


__all__ = ["merge_transient_roots"]
