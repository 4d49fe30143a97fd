"""SQLite-backed durable store with FTS5 search over node content"""

import json
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union
from uuid import UUID

import aiosqlite
from loguru import logger

from spark_fusion.core.exceptions import EncodingError
from spark_fusion.core.models import Connection, MemoryNode
from spark_fusion.storage.base import DurableStore


class SQLiteMemoryStore(DurableStore):
    """
    SQLite storage for memory nodes and associative connections.

    Features:
    - JSON columns for embedding vectors and node metadata
    - FTS5 full-text search on node content
    - One row per (source, target) connection pair
    """

    def __init__(self, db_path: Union[Path, str]) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Establish database connection"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(str(self.db_path))
        self._conn.row_factory = aiosqlite.Row

        await self._setup_schema()
        logger.info(f"Connected to database: {self.db_path}")

    async def close(self) -> None:
        """Close database connection"""
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("Database connection closed")

    async def _setup_schema(self) -> None:
        if not self._conn:
            raise RuntimeError("Database not connected")

        await self._conn.execute("""
            CREATE TABLE IF NOT EXISTS nodes (
                id TEXT PRIMARY KEY,
                content TEXT NOT NULL,
                created_at REAL NOT NULL,
                cortical_layer INTEGER NOT NULL DEFAULT 1,
                is_user INTEGER NOT NULL DEFAULT 1,

                -- JSON list of floats, NULL until attached
                embedding TEXT,
                metadata TEXT NOT NULL DEFAULT '{}'
            )
        """)

        await self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_nodes_created_at
            ON nodes(created_at DESC)
        """)

        await self._conn.execute("""
            CREATE TABLE IF NOT EXISTS connections (
                id TEXT PRIMARY KEY,
                source_node_id TEXT NOT NULL,
                target_node_id TEXT NOT NULL,
                strength REAL NOT NULL,
                last_activated REAL NOT NULL,

                UNIQUE(source_node_id, target_node_id)
            )
        """)

        await self._conn.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS nodes_fts
            USING fts5(id UNINDEXED, content, content=nodes, content_rowid=rowid)
        """)

        # Triggers to keep FTS in sync
        await self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_fts_insert AFTER INSERT ON nodes BEGIN
                INSERT INTO nodes_fts(rowid, id, content) VALUES (new.rowid, new.id, new.content);
            END
        """)

        await self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_fts_delete AFTER DELETE ON nodes BEGIN
                INSERT INTO nodes_fts(nodes_fts, rowid, id, content)
                VALUES ('delete', old.rowid, old.id, old.content);
            END
        """)

        await self._conn.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_fts_update AFTER UPDATE ON nodes BEGIN
                INSERT INTO nodes_fts(nodes_fts, rowid, id, content)
                VALUES ('delete', old.rowid, old.id, old.content);
                INSERT INTO nodes_fts(rowid, id, content) VALUES (new.rowid, new.id, new.content);
            END
        """)

        await self._conn.commit()
        logger.debug("Database schema initialized")

    # ========== NODES ==========

    async def save(self, node: MemoryNode) -> None:
        """Insert or update node with JSON serialization"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        try:
            embedding = json.dumps(node.embedding) if node.embedding is not None else None
            metadata = json.dumps(node.metadata)
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Cannot serialize node {node.id}: {e}") from e

        # ON CONFLICT keeps the rowid stable so the FTS triggers see an UPDATE
        await self._conn.execute(
            """
            INSERT INTO nodes
            (id, content, created_at, cortical_layer, is_user, embedding, metadata)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                content = excluded.content,
                created_at = excluded.created_at,
                cortical_layer = excluded.cortical_layer,
                is_user = excluded.is_user,
                embedding = excluded.embedding,
                metadata = excluded.metadata
            """,
            (
                str(node.id),
                node.content,
                node.created_at.timestamp(),
                node.cortical_layer,
                int(node.is_user),
                embedding,
                metadata,
            ),
        )

        await self._conn.commit()
        logger.debug(f"Saved node {node.id} (layer {node.cortical_layer})")

    async def load(self, node_id: UUID) -> Optional[MemoryNode]:
        """Retrieve node by ID"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "SELECT * FROM nodes WHERE id = ?",
            (str(node_id),)
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return self._row_to_node(row)

    async def query(self, predicate: Callable[[MemoryNode], bool]) -> List[MemoryNode]:
        """Scan all nodes newest first and keep those matching the predicate"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "SELECT * FROM nodes ORDER BY created_at DESC, rowid DESC"
        )
        rows = await cursor.fetchall()

        nodes = (self._row_to_node(row) for row in rows)
        return [node for node in nodes if predicate(node)]

    async def recent(self, limit: int) -> List[MemoryNode]:
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute(
            "SELECT * FROM nodes ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,)
        )
        rows = await cursor.fetchall()

        return [self._row_to_node(row) for row in rows]

    async def search_text(self, query: str, limit: int = 10) -> List[MemoryNode]:
        """
        Full-text search on node content using FTS5.

        Each whitespace term is quoted so punctuation in user text is
        matched literally instead of parsed as FTS query syntax. Terms
        are OR-ed, best match first.
        """
        if not self._conn:
            raise RuntimeError("Database not connected")

        terms = [t.replace('"', '""') for t in query.split()]
        if not terms:
            return []
        match = " OR ".join(f'"{t}"' for t in terms)

        cursor = await self._conn.execute(
            """
            SELECT n.*
            FROM nodes n
            JOIN nodes_fts fts ON n.id = fts.id
            WHERE nodes_fts MATCH ?
            ORDER BY rank
            LIMIT ?
            """,
            (match, limit)
        )
        rows = await cursor.fetchall()

        return [self._row_to_node(row) for row in rows]

    # ========== CONNECTIONS ==========

    async def save_connection(self, connection: Connection) -> None:
        if not self._conn:
            raise RuntimeError("Database not connected")

        await self._conn.execute(
            """
            INSERT INTO connections
            (id, source_node_id, target_node_id, strength, last_activated)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(source_node_id, target_node_id) DO UPDATE SET
                strength = excluded.strength,
                last_activated = excluded.last_activated
            """,
            (
                str(connection.id),
                str(connection.source_node_id),
                str(connection.target_node_id),
                connection.strength,
                connection.last_activated.timestamp(),
            ),
        )

        await self._conn.commit()
        logger.debug(
            f"Saved connection {connection.source_node_id} -> {connection.target_node_id}"
        )

    async def load_connections(self) -> List[Connection]:
        if not self._conn:
            raise RuntimeError("Database not connected")

        cursor = await self._conn.execute("SELECT * FROM connections")
        rows = await cursor.fetchall()

        return [
            Connection(
                id=UUID(row["id"]),
                source_node_id=UUID(row["source_node_id"]),
                target_node_id=UUID(row["target_node_id"]),
                strength=row["strength"],
                last_activated=datetime.fromtimestamp(row["last_activated"]),
            )
            for row in rows
        ]

    async def get_stats(self) -> dict[str, int]:
        """Get database statistics"""
        if not self._conn:
            raise RuntimeError("Database not connected")

        stats = {}

        cursor = await self._conn.execute("SELECT COUNT(*) FROM nodes")
        row = await cursor.fetchone()
        stats["total_nodes"] = row[0] if row else 0

        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM nodes WHERE cortical_layer = 6"
        )
        row = await cursor.fetchone()
        stats["epiphany_nodes"] = row[0] if row else 0

        cursor = await self._conn.execute("SELECT COUNT(*) FROM connections")
        row = await cursor.fetchone()
        stats["total_connections"] = row[0] if row else 0

        return stats

    def _row_to_node(self, row: aiosqlite.Row) -> MemoryNode:
        """Convert database row to MemoryNode"""
        embedding = json.loads(row["embedding"]) if row["embedding"] else None

        return MemoryNode(
            id=UUID(row["id"]),
            content=row["content"],
            created_at=datetime.fromtimestamp(row["created_at"]),
            cortical_layer=row["cortical_layer"],
            is_user=bool(row["is_user"]),
            embedding=embedding,
            metadata=json.loads(row["metadata"]),
        )
