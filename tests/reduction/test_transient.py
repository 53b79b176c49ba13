"""Tests for the transient root merger."""

from __future__ import annotations

import random

import pytest

from nixdu.models import NodeKind
from nixdu.reduction import merge_transient_roots
from tests._fixtures.graph_builder import GraphBuilder, generate_random


def test_temporary_root_moves_under_transient_node(builder: GraphBuilder) -> None:
    temp = builder.node(b"{temp:123}", 4, root=True)
    link = builder.link("profile", 1)
    pkg = builder.path("pkg", 10)
    builder.edge(temp, pkg)
    builder.edge(link, pkg)
    old = builder.build()
    assert old.node(temp).kind is NodeKind.TEMPORARY

    new = merge_transient_roots(old)

    assert temp not in new.roots()
    transient = [idx for idx in new.roots() if new.node(idx).kind is NodeKind.TRANSIENT]
    assert len(transient) == 1
    assert new.node(transient[0]).size == 0
    assert new.node(transient[0]).label() == "{transient}"
    assert new.successors(transient[0]) == [temp]
    assert link in new.roots()
    assert new.reachable_size() == old.reachable_size() == 15
    new.check_metadata()


def test_input_graph_is_left_untouched(builder: GraphBuilder) -> None:
    temp = builder.node(b"{lsof}", 4, root=True)
    old = builder.build()
    edges_before = list(old.graph.edge_list())

    merge_transient_roots(old)

    assert list(old.graph.edge_list()) == edges_before
    assert old.roots() == [temp]


def test_no_transient_node_without_transient_roots(builder: GraphBuilder) -> None:
    builder.link("only", 3)
    old = builder.build()

    new = merge_transient_roots(old)

    assert new.node_count() == old.node_count()
    assert new.roots_name() == old.roots_name()


def test_nested_transient_nodes_are_not_moved(builder: GraphBuilder) -> None:
    link = builder.link("profile")
    # a memory root that is only reached through another root
    nested = builder.node(b"/proc/1/maps", 2, root=True)
    builder.edge(link, nested)
    old = builder.build()
    old.graph.remove_edge(old.root, nested)

    new = merge_transient_roots(old)

    assert new.roots() == [link]
    assert new.successors(link) == [nested]


@pytest.mark.parametrize("seed", range(10))
def test_merge_only_changes_root_adjacency(seed: int) -> None:
    old = generate_random(random.Random(seed), 250, 10)

    new = merge_transient_roots(old)

    old_edges = set(old.graph.edge_list())
    for source, target in new.graph.edge_list():
        if (source, target) in old_edges:
            assert new.node(source) == old.node(source)
            assert new.node(target) == old.node(target)
            continue
        parent = new.node(source)
        if parent.kind is NodeKind.TRANSIENT:
            assert old.node(target).kind.is_transient()
            assert target in old.roots()
        else:
            assert source == new.root
            assert parent.kind is NodeKind.DUMMY
    assert new.reachable_size() == old.reachable_size()
    assert all(not new.node(idx).kind.is_transient() for idx in new.roots())
