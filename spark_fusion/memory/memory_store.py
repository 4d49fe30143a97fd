"""
Memory Store

Owner of memory nodes and their associative connections. Wraps an
injected DurableStore and keeps two in-process views of it: a
SimilarityIndex over node embeddings and the AssociativeGraph.

Every durable call is bounded by STORE_TIMEOUT_SECONDS. Timeouts and
backend failures become StoreUnavailableError; read paths recover from
it with empty results so a failing backend never stops a fusion cycle.
"""

import asyncio
from typing import Any, Awaitable, Dict, List, Optional, TypeVar
from uuid import UUID

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.core.exceptions import (
    EncodingError,
    NotFoundError,
    StoreUnavailableError,
)
from spark_fusion.core.models import Connection, MemoryNode
from spark_fusion.extraction.keywords import extract_keywords
from spark_fusion.memory.associative_graph import AssociativeGraph
from spark_fusion.memory.embeddings import Embedder
from spark_fusion.memory.similarity_index import SimilarityIndex
from spark_fusion.storage.base import DurableStore

T = TypeVar("T")


class MemoryStore:
    """
    Nodes and connections over a durable backend.

    Writes are serialized by one asyncio.Lock. The durable store itself
    is unbounded; retention caps belong to the epiphany history.
    """

    def __init__(
        self,
        durable: DurableStore,
        embedder: Optional[Embedder] = None,
        graph: Optional[AssociativeGraph] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.durable = durable
        self.embedder = embedder
        self.graph = graph if graph is not None else AssociativeGraph()
        self.index = SimilarityIndex()
        self.timeout_seconds = (
            settings.STORE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._lock = asyncio.Lock()

        logger.info(
            f"MemoryStore initialized over {type(durable).__name__} "
            f"(timeout {self.timeout_seconds}s)"
        )

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a durable call under the store timeout"""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StoreUnavailableError(
                f"{operation} timed out after {self.timeout_seconds}s"
            ) from e
        except EncodingError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"{operation} failed: {e}") from e

    async def load(self) -> Dict[str, int]:
        """Rebuild the similarity index and graph from the durable store"""
        nodes = await self._call("query", self.durable.query(lambda node: True))
        for node in reversed(nodes):
            self.index.add(node)

        connections = await self._call("load_connections", self.durable.load_connections())
        edges = self.graph.load(connections)

        logger.info(f"Loaded {len(nodes)} nodes and {edges} connections")
        return {"nodes": len(nodes), "connections": edges}

    # ========== NODES ==========

    async def put(self, node: MemoryNode) -> UUID:
        """Store a node. Raises DimensionMismatchError for a foreign embedding size."""
        async with self._lock:
            self.index.add(node)
            try:
                await self._call("save", self.durable.save(node))
            except (StoreUnavailableError, EncodingError):
                self.index.remove(node.id)
                raise
        logger.debug(f"Stored node {node.id}")
        return node.id

    async def get(self, node_id: UUID) -> MemoryNode:
        node = await self._call("load", self.durable.load(node_id))
        if node is None:
            raise NotFoundError("MemoryNode", node_id)
        return node

    async def recent(self, limit: int) -> List[MemoryNode]:
        """Newest first; [] when the backend is unavailable"""
        try:
            return await self._call("recent", self.durable.recent(limit))
        except StoreUnavailableError as e:
            logger.warning(f"Recent memories unavailable: {e}")
            return []

    async def search(self, query: str, limit: Optional[int] = None) -> List[MemoryNode]:
        """
        Full-text search through the backend.

        If the backend search fails, falls back to a keyword scan over
        the most recent nodes: a node matches when its content contains
        any query keyword (case-insensitive).
        """
        limit = limit or settings.RELATED_MEMORY_LIMIT
        try:
            results = await self._call("search_text", self.durable.search_text(query, limit))
            return results[:limit]
        except StoreUnavailableError as e:
            logger.warning(f"Text search failed, using keyword fallback: {e}")

        keywords = [k.lower() for k in extract_keywords(query)]
        if not keywords:
            return []

        candidates = await self.recent(settings.FALLBACK_SCAN_WINDOW)
        matches = [
            node for node in candidates
            if any(k in node.content.lower() for k in keywords)
        ]
        return matches[:limit]

    async def ingest(
        self,
        content: str,
        cortical_layer: int = 1,
        is_user: bool = True,
        embedding: Optional[List[float]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> MemoryNode:
        """
        Create a node from text and connect it to what it resembles.

        The node is linked in both directions to its LINK_TOP_K most
        similar existing nodes at or above LINK_SIMILARITY_THRESHOLD,
        with the similarity as initial strength.
        """
        if embedding is None and self.embedder is not None:
            embedding = await self.embedder.aembed(content)

        node = MemoryNode(
            content=content,
            cortical_layer=cortical_layer,
            is_user=is_user,
            embedding=embedding,
            metadata=metadata or {},
        )

        similar = []
        if node.embedding is not None:
            similar = self.index.search(
                node.embedding,
                top_k=settings.LINK_TOP_K,
                min_similarity=settings.LINK_SIMILARITY_THRESHOLD,
            )

        await self.put(node)

        for other, score in similar:
            strength = max(0.0, min(1.0, score))
            await self.link(node.id, other.id, strength)
            await self.link(other.id, node.id, strength)

        logger.debug(f"Ingested node {node.id} with {len(similar)} associations")
        return node

    # ========== CONNECTIONS ==========

    async def link(self, source_id: UUID, target_id: UUID, strength: float = 0.5) -> Connection:
        """Create or reinforce an edge and persist it. Self-loops raise InvalidConnectionError."""
        async with self._lock:
            connection = self.graph.propose(source_id, target_id, strength)
            await self._call("save_connection", self.durable.save_connection(connection))
            self.graph.add(connection)
        return connection

    def neighbors(self, node_id: UUID, min_strength: float = 0.0) -> List[Connection]:
        return self.graph.neighbors(node_id, min_strength)

    async def associated(self, node_id: UUID, min_strength: float = 0.0) -> List[MemoryNode]:
        """Nodes on the far end of outgoing edges, strongest first"""
        nodes = []
        for connection in self.graph.neighbors(node_id, min_strength):
            try:
                nodes.append(await self.get(connection.target_node_id))
            except (NotFoundError, StoreUnavailableError) as e:
                logger.warning(f"Skipping associated node: {e}")
        return nodes
