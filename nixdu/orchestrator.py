"""Pipeline orchestration: read, reduce and render the store graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TextIO

from .depgraph import DepGraph
from .logging import get_logger
from .models import DEFAULT_CLASSIFIER, Classifier, Node
from .reduction import condense, keep, keep_reachable, merge_transient_roots, min_size_for_biggest
from .reduction.keep import Predicate
from .render import DotRenderer
from .sizes import format_size
from .store import StoreReader


@dataclass
class RunOptions:
    """Effective settings for one pipeline run."""

    root: Optional[bytes] = None
    min_size: int = 0
    nodes: int = 0
    condense: bool = True


class Orchestrator:
    """Coordinates the reduction pipeline from the store to the dot output."""

    def __init__(
        self,
        reader: StoreReader | None = None,
        renderer: DotRenderer | None = None,
        classifier: Classifier | None = None,
    ) -> None:
        self.reader = reader or StoreReader()
        self.renderer = renderer or DotRenderer()
        self.classifier = classifier or DEFAULT_CLASSIFIER
        self.logger = get_logger("orchestrator")

    def run(self, options: RunOptions) -> DepGraph:
        """Return the reduced dependency graph; store errors propagate."""
        self.logger.info("Reading dependency graph from store...")
        di = DepGraph.build(self.reader.populate, options.root, self.classifier)
        self.logger.info("%d nodes, %d edges read.", di.node_count(), di.edge_count())
        self.logger.debug("Reachable size: %s", format_size(di.reachable_size()))

        di = merge_transient_roots(di)
        if options.condense:
            self.logger.info("Computing quotient graph...")
            di = condense(di)
        else:
            di = keep_reachable(di)
        self.logger.info("%d nodes, %d edges", di.node_count(), di.edge_count())

        min_size = options.min_size
        if options.nodes > 0:
            threshold = min_size_for_biggest(di, options.nodes)
            if threshold > 0:
                min_size = threshold
                self.logger.debug(
                    "Keeping the %d biggest nodes (at least %s)",
                    options.nodes,
                    format_size(min_size),
                )

        if min_size > 0:
            di = keep(di, _at_least(min_size))
            self.logger.info(
                "%d nodes, %d edges after hiding nodes below %s",
                di.node_count(),
                di.edge_count(),
                format_size(min_size),
            )
        return di

    def render(self, di: DepGraph, stream: TextIO) -> None:
        self.renderer.render(di, stream)


def _at_least(min_size: int) -> Predicate:
    def predicate(node: Node) -> bool:
        return node.size >= min_size

    return predicate


__all__ = ["Orchestrator", "RunOptions"]
