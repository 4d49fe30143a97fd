"""
Associative Graph

Weighted directed connections between memory nodes. Co-activation
reinforces an edge toward 1.0; time since last activation weakens it
through `decay`, which callers apply explicitly so strength arithmetic
stays a pure function of its inputs.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.core.exceptions import InvalidConnectionError
from spark_fusion.core.models import Connection


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


class AssociativeGraph:
    """
    Directed graph of memory connections.

    One edge per ordered (source, target) pair: connecting an existing
    pair reinforces it instead of adding a second edge.
    """

    def __init__(self, reinforcement_rate: Optional[float] = None) -> None:
        self.reinforcement_rate = (
            settings.REINFORCEMENT_RATE if reinforcement_rate is None else reinforcement_rate
        )
        self._edges: Dict[Tuple[UUID, UUID], Connection] = {}
        self._outgoing: Dict[UUID, List[Tuple[UUID, UUID]]] = {}

    def __len__(self) -> int:
        return len(self._edges)

    def propose(
        self,
        source_id: UUID,
        target_id: UUID,
        initial_strength: float = 0.5,
        now: Optional[datetime] = None,
    ) -> Connection:
        """
        The edge `connect` would store for source -> target, without storing it.

        Reinforcement: s' = s + rate * (1 - s), approaching 1.0.
        """
        if source_id == target_id:
            raise InvalidConnectionError(f"Self-loop rejected for node {source_id}")

        now = now or datetime.now()
        existing = self._edges.get((source_id, target_id))

        if existing is not None:
            reinforced = existing.strength + self.reinforcement_rate * (1.0 - existing.strength)
            return existing.model_copy(
                update={"strength": _clamp(reinforced), "last_activated": now}
            )

        return Connection(
            source_node_id=source_id,
            target_node_id=target_id,
            strength=_clamp(initial_strength),
            last_activated=now,
        )

    def connect(
        self,
        source_id: UUID,
        target_id: UUID,
        initial_strength: float = 0.5,
        now: Optional[datetime] = None,
    ) -> Connection:
        """Create or reinforce the edge source -> target"""
        connection = self.propose(source_id, target_id, initial_strength, now)
        self.add(connection)
        logger.debug(f"Connected {source_id} -> {target_id} (strength {connection.strength:.3f})")
        return connection

    def add(self, connection: Connection) -> None:
        """Insert a stored edge as-is (used when restoring from the durable store)"""
        if connection.source_node_id == connection.target_node_id:
            raise InvalidConnectionError(
                f"Self-loop rejected for node {connection.source_node_id}"
            )
        key = (connection.source_node_id, connection.target_node_id)
        if key not in self._edges:
            self._outgoing.setdefault(connection.source_node_id, []).append(key)
        self._edges[key] = connection

    def load(self, connections: Iterable[Connection]) -> int:
        count = 0
        for connection in connections:
            self.add(connection)
            count += 1
        return count

    def edge(self, source_id: UUID, target_id: UUID) -> Optional[Connection]:
        return self._edges.get((source_id, target_id))

    def neighbors(self, node_id: UUID, min_strength: float = 0.0) -> List[Connection]:
        """Outgoing edges at or above `min_strength`, strongest first"""
        edges = [
            self._edges[key]
            for key in self._outgoing.get(node_id, [])
            if self._edges[key].strength >= min_strength
        ]
        edges.sort(key=lambda c: c.strength, reverse=True)
        return edges

    @staticmethod
    def decay(edge: Connection, elapsed_seconds: float, half_life_seconds: float) -> float:
        """
        Exponential decay: strength * 0.5 ** (elapsed / half_life).

        Pure helper. The graph never applies it on its own.
        """
        if half_life_seconds <= 0:
            raise ValueError("half_life_seconds must be positive")
        if elapsed_seconds <= 0:
            return edge.strength
        return edge.strength * 0.5 ** (elapsed_seconds / half_life_seconds)
