"""Durable store interface for memory nodes and connections"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from uuid import UUID

from spark_fusion.core.models import Connection, MemoryNode


class DurableStore(ABC):
    """
    Backing storage owned by the host application.

    Every call may block or fail. The engine bounds each call with a
    timeout and treats errors as "store unavailable"; retries are the
    backend's business.
    """

    async def connect(self) -> None:
        """Open resources. Backends without any may keep the no-op."""

    async def close(self) -> None:
        """Release resources"""

    @abstractmethod
    async def save(self, node: MemoryNode) -> None:
        """Insert or replace a node"""
        pass

    @abstractmethod
    async def load(self, node_id: UUID) -> Optional[MemoryNode]:
        """Fetch a node by id, None when absent"""
        pass

    @abstractmethod
    async def query(self, predicate: Callable[[MemoryNode], bool]) -> List[MemoryNode]:
        """All nodes matching the predicate, newest first"""
        pass

    @abstractmethod
    async def search_text(self, query: str, limit: int = 10) -> List[MemoryNode]:
        """Full-text search over node content"""
        pass

    async def recent(self, limit: int) -> List[MemoryNode]:
        """Newest `limit` nodes. Backends should override with an indexed query."""
        nodes = await self.query(lambda node: True)
        return nodes[:limit]

    @abstractmethod
    async def save_connection(self, connection: Connection) -> None:
        """Insert or replace the edge for (source, target)"""
        pass

    @abstractmethod
    async def load_connections(self) -> List[Connection]:
        pass
