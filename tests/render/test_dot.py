"""Tests for the dot renderer."""

from __future__ import annotations

import io
from pathlib import Path

from nixdu.render import DotRenderer
from nixdu.render.dot import escape_label
from tests._fixtures.graph_builder import GraphBuilder, store_path


def test_renders_nodes_and_edges_without_dummy_root(builder: GraphBuilder) -> None:
    link = builder.link("profile", 0)
    app = builder.path("app", 1536)
    builder.edge(link, app)
    di = builder.build()
    stream = io.StringIO()

    DotRenderer().render(di, stream)

    output = stream.getvalue()
    assert output.startswith("digraph nixstore {\n")
    assert output.rstrip().endswith("}")
    assert f'N{app} [label = "app (1.5 KiB)", shape = box, fillcolor = "0.000 0.500 1.000"];' in output
    assert f'N{link} [label = "/nix/var/nix/gcroots/profile (0 B)", shape = folder' in output
    assert f"N{link} -> N{app};" in output
    assert f"N{di.root}" not in output
    assert "{dummy}" not in output


def test_explicit_root_is_drawn(builder: GraphBuilder) -> None:
    top = builder.path("system", 5)
    dep = builder.path("glibc", 7)
    builder.edge(top, dep)
    di = builder.build(root=store_path("system"))

    output = DotRenderer().render_to_string(di)

    assert 'N0 [label = "system (5 B)"' in output
    assert "N0 -> N1;" in output


def test_escape_label() -> None:
    assert escape_label('a "quoted" \\ name\n') == 'a \\"quoted\\" \\\\ name\\n'


def test_custom_templates_take_precedence(tmp_path: Path, builder: GraphBuilder) -> None:
    (tmp_path / "graph.dot.j2").write_text(
        "{% for node in nodes %}{{ node.label }};{% endfor %}", encoding="utf-8"
    )
    builder.link("only", 3)
    di = builder.build()

    output = DotRenderer(templates_dir=tmp_path).render_to_string(di)

    assert output == "/nix/var/nix/gcroots/only (3 B);"
