from __future__ import annotations

import random

import pytest

from tests._fixtures.graph_builder import GraphBuilder


@pytest.fixture
def builder() -> GraphBuilder:
    """Provide an empty graph builder."""
    return GraphBuilder()


@pytest.fixture
def rng(request: pytest.FixtureRequest) -> random.Random:
    """Provide a random generator seeded from the test id, for reproducible runs."""
    return random.Random(request.node.nodeid)
