"""Unit tests for the associative graph"""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from spark_fusion.core.exceptions import InvalidConnectionError
from spark_fusion.memory.associative_graph import AssociativeGraph


@pytest.fixture
def graph() -> AssociativeGraph:
    return AssociativeGraph(reinforcement_rate=0.1)


class TestConnect:
    """Test edge creation and reinforcement"""

    def test_creates_edge(self, graph: AssociativeGraph) -> None:
        a, b = uuid4(), uuid4()

        edge = graph.connect(a, b, 0.5)

        assert edge.strength == 0.5
        assert graph.edge(a, b) == edge
        assert len(graph) == 1

    def test_reinforces_existing_edge(self, graph: AssociativeGraph) -> None:
        """s' = s + 0.1 (1 - s), refreshing last_activated"""
        a, b = uuid4(), uuid4()
        earlier = datetime(2024, 1, 1)
        later = earlier + timedelta(hours=1)

        graph.connect(a, b, 0.5, now=earlier)
        edge = graph.connect(a, b, 0.5, now=later)

        assert edge.strength == pytest.approx(0.55)
        assert edge.last_activated == later
        assert len(graph) == 1

    def test_reinforcement_approaches_one(self, graph: AssociativeGraph) -> None:
        a, b = uuid4(), uuid4()
        for _ in range(200):
            edge = graph.connect(a, b, 0.5)

        assert 0.99 < edge.strength <= 1.0

    def test_directed(self, graph: AssociativeGraph) -> None:
        """b -> a is a different edge from a -> b"""
        a, b = uuid4(), uuid4()
        graph.connect(a, b, 0.5)
        reverse = graph.connect(b, a, 0.4)

        assert reverse.strength == 0.4
        assert len(graph) == 2

    def test_self_loop_rejected(self, graph: AssociativeGraph) -> None:
        a = uuid4()

        with pytest.raises(InvalidConnectionError):
            graph.connect(a, a, 0.5)

    def test_initial_strength_clamped(self, graph: AssociativeGraph) -> None:
        edge = graph.connect(uuid4(), uuid4(), 1.7)

        assert edge.strength == 1.0

    def test_propose_does_not_store(self, graph: AssociativeGraph) -> None:
        a, b = uuid4(), uuid4()
        graph.connect(a, b, 0.5)

        proposed = graph.propose(a, b, 0.5)
        fresh = graph.propose(b, a, 0.3)

        assert proposed.strength == pytest.approx(0.55)
        assert fresh.strength == 0.3
        assert graph.edge(a, b).strength == 0.5
        assert graph.edge(b, a) is None
        assert len(graph) == 1

        graph.add(proposed)
        assert graph.edge(a, b).strength == pytest.approx(0.55)
        assert len(graph) == 1


class TestNeighbors:

    def test_threshold_and_order(self, graph: AssociativeGraph) -> None:
        a, b, c, d = uuid4(), uuid4(), uuid4(), uuid4()
        graph.connect(a, b, 0.2)
        graph.connect(a, c, 0.9)
        graph.connect(a, d, 0.5)

        neighbors = graph.neighbors(a, min_strength=0.5)

        assert [e.target_node_id for e in neighbors] == [c, d]

    def test_unknown_node_has_no_neighbors(self, graph: AssociativeGraph) -> None:
        assert graph.neighbors(uuid4()) == []


class TestDecay:

    def test_half_life(self, graph: AssociativeGraph) -> None:
        edge = graph.connect(uuid4(), uuid4(), 0.8)

        assert AssociativeGraph.decay(edge, 60.0, 60.0) == pytest.approx(0.4)
        assert AssociativeGraph.decay(edge, 120.0, 60.0) == pytest.approx(0.2)

    def test_decay_does_not_mutate(self, graph: AssociativeGraph) -> None:
        a, b = uuid4(), uuid4()
        edge = graph.connect(a, b, 0.8)

        AssociativeGraph.decay(edge, 600.0, 60.0)

        assert graph.edge(a, b).strength == 0.8

    def test_invalid_half_life(self, graph: AssociativeGraph) -> None:
        edge = graph.connect(uuid4(), uuid4(), 0.8)

        with pytest.raises(ValueError):
            AssociativeGraph.decay(edge, 10.0, 0.0)
