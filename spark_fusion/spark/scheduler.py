"""
Spark Scheduler

Runs fusion cycles on a timer and records what they produce.

    INACTIVE --start()--> ACTIVE --stop()--> INACTIVE

While ACTIVE a background task fires one cycle every
60 / spark_frequency seconds. A cycle never overlaps another: a tick
that arrives while a cycle (timer or manual) is running is skipped.
Contextual sparks work in either state.
"""

import asyncio
from enum import Enum
from typing import List, Optional

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.core.exceptions import SparkFusionError
from spark_fusion.core.models import EpiphanyAnalytics, EpiphanyEvent
from spark_fusion.extraction.concept_extractor import ConceptExtractor
from spark_fusion.fusion.fusion_engine import FusionEngine
from spark_fusion.fusion.signals import SignalGatherer
from spark_fusion.memory.memory_store import MemoryStore
from spark_fusion.storage.history import EpiphanyHistory

ANALYTICS_WINDOW = 20


class SchedulerState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


def clamp_frequency(frequency: float) -> float:
    return max(settings.MIN_SPARK_FREQUENCY, min(frequency, settings.MAX_SPARK_FREQUENCY))


class SparkScheduler:
    """
    Owns the epiphany history and the timer.

    Significant epiphanies (importance above CHAIN_TRIGGER_IMPORTANCE)
    spawn a chain whose events go through the same processing, up to
    CHAIN_MAX_GENERATIONS levels of re-chaining.
    """

    def __init__(
        self,
        store: MemoryStore,
        extractor: ConceptExtractor,
        engine: FusionEngine,
        history: Optional[EpiphanyHistory] = None,
        spark_frequency: Optional[float] = None,
        max_chain_generations: Optional[int] = None,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.engine = engine
        self.signals = SignalGatherer(store, extractor)
        self.history = history if history is not None else EpiphanyHistory()

        self.spark_frequency = clamp_frequency(
            settings.SPARK_FREQUENCY if spark_frequency is None else spark_frequency
        )
        self.max_chain_generations = (
            settings.CHAIN_MAX_GENERATIONS if max_chain_generations is None
            else max_chain_generations
        )

        self.state = SchedulerState.INACTIVE
        self._task: Optional[asyncio.Task] = None
        self._cycle_lock = asyncio.Lock()

        self.history.load()
        self.total_epiphanies = len(self.history)
        self.last_epiphany: Optional[EpiphanyEvent] = self.history.last

        logger.info(
            f"SparkScheduler initialized (frequency {self.spark_frequency}, "
            f"{self.total_epiphanies} epiphanies in history)"
        )

    @property
    def interval_seconds(self) -> float:
        return 60.0 / self.spark_frequency

    @property
    def is_active(self) -> bool:
        return self.state == SchedulerState.ACTIVE

    # ========== LIFECYCLE ==========

    async def start(self) -> None:
        if self.is_active:
            return
        self.state = SchedulerState.ACTIVE
        self._task = asyncio.create_task(self._timer_loop())
        logger.info(f"Spark scheduler started (every {self.interval_seconds:.0f}s)")

    async def stop(self) -> None:
        """Stop the timer. A cycle already running finishes first."""
        self.state = SchedulerState.INACTIVE
        task, self._task = self._task, None
        if task is not None and not task.done():
            async with self._cycle_lock:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        logger.info("Spark scheduler stopped")

    async def adjust_spark_frequency(self, frequency: float) -> float:
        """Clamp and apply a new frequency, restarting the timer if it runs"""
        self.spark_frequency = clamp_frequency(frequency)
        if self.is_active:
            await self.stop()
            await self.start()
        logger.info(f"Spark frequency adjusted to {self.spark_frequency}")
        return self.spark_frequency

    async def _timer_loop(self) -> None:
        while self.is_active:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Spark cycle failed: {e}")

    # ========== CYCLES ==========

    async def run_cycle(self) -> Optional[EpiphanyEvent]:
        """
        Gather signals and fuse them into one epiphany.

        Returns None when there was nothing to fuse or another cycle was
        still running.
        """
        if self._cycle_lock.locked():
            logger.warning("Spark cycle still running, skipping tick")
            return None

        async with self._cycle_lock:
            concepts = await self.signals.recent_concepts()
            clusters = await self.signals.semantic_clusters()
            patterns = await self.signals.conversation_patterns()
            cross_modal = await self.signals.cross_modal_concepts()

            logger.debug(
                f"Cycle inputs: {len(concepts)} concepts, {len(clusters)} clusters, "
                f"{len(patterns)} patterns, {len(cross_modal)} cross-modal"
            )

            event = self.engine.fuse_multi_layered(concepts, clusters, patterns, cross_modal)
            if event is not None:
                await self.process_epiphany(event)
            return event

    async def trigger_contextual_spark(self, text: str) -> Optional[str]:
        """Synthesize an insight about `text` now; returns its concept text"""
        memories = await self.signals.relevant_memories(text)
        concepts = self.extractor.extract(text)
        neighbors = await self.signals.semantic_neighbors(text)

        event = self.engine.generate_contextual_insight(text, concepts, memories, neighbors)
        if event is None:
            return None

        await self.process_epiphany(event)
        logger.info(f"Contextual spark: {event.concept}")
        return event.concept

    async def process_epiphany(self, event: EpiphanyEvent, generation: int = 0) -> None:
        """Record an epiphany, store it as a memory and chain it if significant"""
        self.last_epiphany = event
        self.total_epiphanies += 1
        await self.history.append(event)
        await self._store_epiphany(event)

        logger.info(
            f"Epiphany: {event.concept[:80]} "
            f"(importance {event.importance:.2f}, novelty {event.novelty:.2f})"
        )

        if (
            event.importance > settings.CHAIN_TRIGGER_IMPORTANCE
            and generation < self.max_chain_generations
        ):
            chain = self.engine.generate_epiphany_chain(
                event, settings.CHAIN_DEPTH, settings.CHAIN_BRANCHING
            )
            for linked in chain:
                await self.process_epiphany(linked, generation + 1)

    async def _store_epiphany(self, event: EpiphanyEvent) -> None:
        content = f"EPIPHANY ({event.concept_type.value}): {event.concept}"
        try:
            await self.store.ingest(
                content,
                cortical_layer=settings.EPIPHANY_CORTICAL_LAYER,
                is_user=False,
                metadata={
                    "epiphany_id": str(event.id),
                    "importance": event.importance,
                    "confidence": event.confidence,
                    "novelty": event.novelty,
                },
            )
        except SparkFusionError as e:
            logger.error(f"Epiphany {event.id} kept in history only: {e}")

    # ========== ANALYTICS ==========

    @property
    def epiphanies(self) -> List[EpiphanyEvent]:
        return self.history.events

    def analytics(self) -> EpiphanyAnalytics:
        """Averages over the most recent epiphanies"""
        recent = self.history.recent(ANALYTICS_WINDOW)
        if not recent:
            average_importance = average_novelty = 0.0
        else:
            average_importance = sum(e.importance for e in recent) / len(recent)
            average_novelty = sum(e.novelty for e in recent) / len(recent)

        return EpiphanyAnalytics(
            total_epiphanies=self.total_epiphanies,
            average_importance=average_importance,
            average_novelty=average_novelty,
            spark_frequency=self.spark_frequency,
            last_epiphany_at=self.last_epiphany.timestamp if self.last_epiphany else None,
        )
