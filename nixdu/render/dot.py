"""Graphviz rendering of a dependency graph."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, TextIO, Tuple

from jinja2 import Environment, FileSystemLoader

from ..depgraph import DepGraph
from ..models import NodeKind
from ..sizes import format_size

_SHAPES: Dict[NodeKind, str] = {
    NodeKind.PATH: "box",
    NodeKind.LINK: "folder",
    NodeKind.DUMMY: "point",
    NodeKind.FILTERED_OUT: "doubleoctagon",
    NodeKind.MEMORY: "octagon",
    NodeKind.TEMPORARY: "octagon",
    NodeKind.TRANSIENT: "octagon",
    NodeKind.SHARED: "component",
}


@dataclass(frozen=True)
class DotNode:
    """A node as handed to the template."""

    id: int
    label: str
    shape: str
    color: str


class DotRenderer:
    """Writes a dependency graph in the dot format."""

    TEMPLATE = "graph.dot.j2"

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, di: DepGraph, stream: TextIO) -> None:
        """Write ``di`` to ``stream``; write errors propagate."""
        stream.write(self.render_to_string(di))
        stream.flush()

    def render_to_string(self, di: DepGraph) -> str:
        nodes, edges = self._collect(di)
        template = self._env.get_template(self.TEMPLATE)
        return template.render(nodes=nodes, edges=edges)

    def _collect(self, di: DepGraph) -> Tuple[List[DotNode], List[Tuple[int, int]]]:
        # a synthetic root only gathers the gc roots, it is not drawn
        hidden = {di.root} if di.node(di.root).kind is NodeKind.DUMMY else set()
        biggest = max((node.size for _, node in di.nodes()), default=0)
        nodes = [
            DotNode(
                id=idx,
                label=escape_label(f"{node.label()} ({format_size(node.size)})"),
                shape=_SHAPES[node.kind],
                color=_size_color(node.size, biggest),
            )
            for idx, node in di.nodes()
            if idx not in hidden
        ]
        edges = sorted(
            (source, target)
            for source, target in di.graph.edge_list()
            if source not in hidden and target not in hidden
        )
        return nodes, edges


def escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _size_color(size: int, biggest: int) -> str:
    """Return an HSV color going from green (small) to red (biggest)."""
    ratio = size / biggest if biggest else 0.0
    hue = 0.4 * (1.0 - ratio)
    return f"{hue:.3f} 0.500 1.000"


__all__ = ["DotNode", "DotRenderer", "escape_label"]
