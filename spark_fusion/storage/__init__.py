"""Durable storage backends and the epiphany history"""

from spark_fusion.storage.base import DurableStore
from spark_fusion.storage.sqlite_store import SQLiteMemoryStore
from spark_fusion.storage.memory_backend import InMemoryStore
from spark_fusion.storage.history import EpiphanyHistory

__all__ = [
    "DurableStore",
    "SQLiteMemoryStore",
    "InMemoryStore",
    "EpiphanyHistory",
]
