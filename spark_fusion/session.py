"""
Session wiring

One SparkSession per host session: a durable backend, the memory store
over it, the extractor, the fusion engine and the scheduler. Nothing is
global; hosts that want two independent engines create two sessions.

Example:
    session = await create_session(db_path="data/memory.db")
    await session.store.ingest("I love machine learning")
    await session.scheduler.start()
    ...
    await session.close()
"""

import random
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.extraction.concept_extractor import ConceptExtractor
from spark_fusion.extraction.tagger import Tagger
from spark_fusion.fusion.fusion_engine import FusionEngine, PhraseSelector
from spark_fusion.memory.embeddings import Embedder, HashingEmbedder
from spark_fusion.memory.memory_store import MemoryStore
from spark_fusion.spark.scheduler import SparkScheduler
from spark_fusion.storage.base import DurableStore
from spark_fusion.storage.history import EpiphanyHistory
from spark_fusion.storage.sqlite_store import SQLiteMemoryStore


class SparkSession:
    """The wired components of one engine instance"""

    def __init__(
        self,
        durable: DurableStore,
        store: MemoryStore,
        extractor: ConceptExtractor,
        engine: FusionEngine,
        scheduler: SparkScheduler,
    ) -> None:
        self.durable = durable
        self.store = store
        self.extractor = extractor
        self.engine = engine
        self.scheduler = scheduler

    async def close(self) -> None:
        """Stop the timer and release the backend"""
        await self.scheduler.stop()
        await self.durable.close()
        logger.info("Spark session closed")


async def create_session(
    db_path: Optional[Union[Path, str]] = None,
    history_path: Optional[Union[Path, str]] = None,
    durable: Optional[DurableStore] = None,
    embedder: Optional[Embedder] = None,
    tagger: Optional[Tagger] = None,
    rng: Optional[random.Random] = None,
    spark_frequency: Optional[float] = None,
) -> SparkSession:
    """
    Build and connect a session.

    Defaults: SQLite at DB_PATH, history snapshot at HISTORY_PATH,
    hashing embedder, rule-based tagger. Passing `durable` skips the
    SQLite backend; passing `rng` draws flavor phrases from it.
    """
    if durable is None:
        durable = SQLiteMemoryStore(db_path or settings.DB_PATH)
    await durable.connect()

    store = MemoryStore(durable, embedder=embedder or HashingEmbedder())
    await store.load()

    extractor = ConceptExtractor(tagger)
    engine = FusionEngine(PhraseSelector(rng) if rng is not None else None)
    history = EpiphanyHistory(history_path or settings.HISTORY_PATH)
    scheduler = SparkScheduler(
        store, extractor, engine, history=history, spark_frequency=spark_frequency
    )

    logger.info(f"Spark session ready over {type(durable).__name__}")
    return SparkSession(durable, store, extractor, engine, scheduler)
