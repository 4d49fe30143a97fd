"""Process-local durable store for tests and ephemeral sessions"""

from typing import Callable, Dict, List, Optional, Tuple
from uuid import UUID

from loguru import logger

from spark_fusion.core.models import Connection, MemoryNode
from spark_fusion.storage.base import DurableStore


class InMemoryStore(DurableStore):
    """
    Dict-backed store. Nothing survives the process.

    `search_text` matches nodes containing any query term
    (case-insensitive), ranked by how many terms they contain.
    """

    def __init__(self) -> None:
        self._nodes: Dict[UUID, MemoryNode] = {}
        self._order: List[UUID] = []
        self._connections: Dict[Tuple[UUID, UUID], Connection] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    async def save(self, node: MemoryNode) -> None:
        if node.id not in self._nodes:
            self._order.append(node.id)
        self._nodes[node.id] = node
        logger.debug(f"Saved node {node.id} in memory")

    async def load(self, node_id: UUID) -> Optional[MemoryNode]:
        return self._nodes.get(node_id)

    def _newest_first(self) -> List[MemoryNode]:
        # Insertion order breaks timestamp ties
        indexed = [(self._nodes[nid], i) for i, nid in enumerate(self._order)]
        indexed.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
        return [node for node, _ in indexed]

    async def query(self, predicate: Callable[[MemoryNode], bool]) -> List[MemoryNode]:
        return [node for node in self._newest_first() if predicate(node)]

    async def recent(self, limit: int) -> List[MemoryNode]:
        return self._newest_first()[:limit]

    async def search_text(self, query: str, limit: int = 10) -> List[MemoryNode]:
        terms = [t.lower() for t in query.split()]
        if not terms:
            return []

        scored = []
        for node in self._newest_first():
            content = node.content.lower()
            hits = sum(1 for t in terms if t in content)
            if hits:
                scored.append((node, hits))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [node for node, _ in scored[:limit]]

    async def save_connection(self, connection: Connection) -> None:
        key = (connection.source_node_id, connection.target_node_id)
        self._connections[key] = connection

    async def load_connections(self) -> List[Connection]:
        return list(self._connections.values())
