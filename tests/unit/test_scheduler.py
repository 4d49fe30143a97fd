"""Unit tests for the spark scheduler"""

import asyncio
from pathlib import Path

import pytest

from spark_fusion.core.models import ConceptType, EpiphanyEvent, FusionMethod
from spark_fusion.extraction.concept_extractor import ConceptExtractor
from spark_fusion.fusion.fusion_engine import FusionEngine, PhraseSelector
from spark_fusion.memory.memory_store import MemoryStore
from spark_fusion.spark.scheduler import SchedulerState, SparkScheduler, clamp_frequency
from spark_fusion.storage.history import EpiphanyHistory
from spark_fusion.storage.memory_backend import InMemoryStore


class SlowSaveStore(InMemoryStore):
    """Backend whose writes take `delay` seconds"""

    delay = 0.0

    async def save(self, node):
        await asyncio.sleep(self.delay)
        await super().save(node)


def make_scheduler(history: EpiphanyHistory = None, **kwargs) -> SparkScheduler:
    return SparkScheduler(
        MemoryStore(InMemoryStore()),
        ConceptExtractor(),
        FusionEngine(PhraseSelector()),
        history=history if history is not None else EpiphanyHistory(cap=100),
        **kwargs,
    )


def make_event(importance: float, novelty: float = 0.5) -> EpiphanyEvent:
    return EpiphanyEvent(
        concept=f"insight at {importance}",
        concept_type=ConceptType.ABSTRACT_CONCEPT,
        importance=importance,
        fusion_method=FusionMethod.MULTI_LAYERED_FUSION,
        confidence=0.8,
        novelty=novelty,
    )


class TestFrequency:
    """Test frequency clamping and timer interval"""

    @pytest.mark.parametrize(
        "frequency,interval",
        [(1.0, 60.0), (0.1, 600.0), (0.5, 120.0)],
    )
    def test_interval(self, frequency: float, interval: float) -> None:
        scheduler = make_scheduler(spark_frequency=frequency)

        assert scheduler.interval_seconds == pytest.approx(interval)

    def test_clamp(self) -> None:
        assert clamp_frequency(5.0) == 1.0
        assert clamp_frequency(0.0) == 0.1
        assert clamp_frequency(-3.0) == 0.1
        assert clamp_frequency(0.4) == 0.4

    def test_constructor_clamps(self) -> None:
        assert make_scheduler(spark_frequency=3.0).spark_frequency == 1.0


class TestLifecycle:
    """Test INACTIVE/ACTIVE transitions"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        scheduler = make_scheduler()
        assert scheduler.state == SchedulerState.INACTIVE

        await scheduler.start()
        task = scheduler._task
        await scheduler.start()

        assert scheduler.is_active
        assert scheduler._task is task

        await scheduler.stop()

        assert scheduler.state == SchedulerState.INACTIVE
        assert scheduler._task is None
        assert task.done()

    @pytest.mark.asyncio
    async def test_stop_when_inactive(self) -> None:
        scheduler = make_scheduler()

        await scheduler.stop()

        assert not scheduler.is_active

    @pytest.mark.asyncio
    async def test_adjust_while_active_restarts_timer(self) -> None:
        scheduler = make_scheduler(spark_frequency=0.3)
        await scheduler.process_epiphany(make_event(0.4))
        await scheduler.start()
        old_task = scheduler._task

        applied = await scheduler.adjust_spark_frequency(0.5)

        assert applied == 0.5
        assert scheduler.is_active
        assert scheduler._task is not old_task
        assert old_task.done()
        assert len(scheduler.history) == 1
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_adjust_while_inactive(self) -> None:
        scheduler = make_scheduler()

        assert await scheduler.adjust_spark_frequency(7.0) == 1.0
        assert not scheduler.is_active
        assert scheduler._task is None

    @pytest.mark.asyncio
    async def test_timer_fires_cycles(self, monkeypatch: pytest.MonkeyPatch) -> None:
        scheduler = make_scheduler()
        monkeypatch.setattr(SparkScheduler, "interval_seconds", property(lambda self: 0.01))
        fired = asyncio.Event()

        async def fake_cycle():
            fired.set()
            return None

        scheduler.run_cycle = fake_cycle
        await scheduler.start()
        await asyncio.wait_for(fired.wait(), timeout=1.0)
        await scheduler.stop()

        assert fired.is_set()

    @pytest.mark.asyncio
    async def test_adjust_lets_running_cycle_finish(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Every recorded epiphany is also stored when the timer restarts mid-cycle"""
        store = MemoryStore(SlowSaveStore())
        await store.ingest("I love machine learning")
        await store.ingest("Machine learning is fascinating")
        store.durable.delay = 0.05
        scheduler = SparkScheduler(
            store,
            ConceptExtractor(),
            FusionEngine(PhraseSelector()),
            history=EpiphanyHistory(cap=100),
        )
        monkeypatch.setattr(SparkScheduler, "interval_seconds", property(lambda self: 0.01))

        await scheduler.start()
        for _ in range(100):
            if len(scheduler.history) >= 1:
                break
            await asyncio.sleep(0.01)
        await scheduler.adjust_spark_frequency(0.5)
        await scheduler.stop()

        epiphany_nodes = [node for node in await store.recent(500) if node.cortical_layer == 6]
        assert len(scheduler.history) >= 1
        assert len(epiphany_nodes) == len(scheduler.history)


class TestCycles:
    """Test fusion cycles and contextual sparks"""

    @pytest.mark.asyncio
    async def test_empty_store_produces_nothing(self) -> None:
        scheduler = make_scheduler()

        assert await scheduler.run_cycle() is None
        assert scheduler.total_epiphanies == 0

    @pytest.mark.asyncio
    async def test_cycle_skipped_while_running(self) -> None:
        scheduler = make_scheduler()
        await scheduler.store.ingest("I love machine learning")

        async with scheduler._cycle_lock:
            assert await scheduler.run_cycle() is None

        assert len(scheduler.history) == 0

    @pytest.mark.asyncio
    async def test_cycle_records_and_stores_epiphany(self) -> None:
        scheduler = make_scheduler()
        await scheduler.store.ingest("I love machine learning")
        await scheduler.store.ingest("Machine learning is fascinating")

        event = await scheduler.run_cycle()

        assert event is not None
        assert scheduler.history.events[0] == event
        assert scheduler.last_epiphany is not None

        stored = [
            node for node in await scheduler.store.recent(50)
            if node.metadata.get("epiphany_id") == str(event.id)
        ]
        assert len(stored) == 1
        assert stored[0].content.startswith("EPIPHANY (abstract_concept): ")
        assert stored[0].cortical_layer == 6
        assert stored[0].is_user is False

    @pytest.mark.asyncio
    async def test_contextual_spark_while_inactive(self) -> None:
        scheduler = make_scheduler()
        await scheduler.store.ingest("Neural networks learn representations")

        insight = await scheduler.trigger_contextual_spark("How do neural networks learn?")

        assert insight.startswith("Contextual synthesis of 'How do neural networks learn?'")
        assert not scheduler.is_active
        assert len(scheduler.history) == 1
        assert scheduler.history.last.concept_type == ConceptType.CONTEXTUAL

    @pytest.mark.asyncio
    async def test_contextual_spark_with_nothing_to_say(self) -> None:
        scheduler = make_scheduler()

        assert await scheduler.trigger_contextual_spark("hi") is None
        assert scheduler.total_epiphanies == 0


class TestChaining:
    """Test that significant epiphanies chain a bounded number of times"""

    @pytest.mark.asyncio
    async def test_chain_is_bounded(self) -> None:
        """Seed + 6 first-generation + 6 for each of the two 0.9 branches"""
        scheduler = make_scheduler()

        await scheduler.process_epiphany(make_event(0.9))

        assert scheduler.total_epiphanies == 19
        assert len(scheduler.history) == 19
        assert len(await scheduler.store.recent(100)) == 19

    @pytest.mark.asyncio
    async def test_single_generation(self) -> None:
        scheduler = make_scheduler(max_chain_generations=1)

        await scheduler.process_epiphany(make_event(0.9))

        assert scheduler.total_epiphanies == 7
        chain = scheduler.epiphanies[1:]
        assert all(e.concept_type == ConceptType.CHAIN_REACTION for e in chain)

    @pytest.mark.asyncio
    async def test_threshold_is_strict(self) -> None:
        scheduler = make_scheduler()

        await scheduler.process_epiphany(make_event(0.8))

        assert scheduler.total_epiphanies == 1


class TestAnalytics:

    def test_empty(self) -> None:
        analytics = make_scheduler(spark_frequency=0.3).analytics()

        assert analytics.total_epiphanies == 0
        assert analytics.average_importance == 0.0
        assert analytics.average_novelty == 0.0
        assert analytics.spark_frequency == 0.3
        assert analytics.last_epiphany_at is None

    @pytest.mark.asyncio
    async def test_averages(self) -> None:
        scheduler = make_scheduler()
        await scheduler.process_epiphany(make_event(0.4, novelty=0.2))
        second = make_event(0.6, novelty=0.4)
        await scheduler.process_epiphany(second)

        analytics = scheduler.analytics()

        assert analytics.total_epiphanies == 2
        assert analytics.average_importance == pytest.approx(0.5)
        assert analytics.average_novelty == pytest.approx(0.3)
        assert analytics.last_epiphany_at == second.timestamp

    @pytest.mark.asyncio
    async def test_history_restored_on_construction(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        first = make_scheduler(history=EpiphanyHistory(path))
        await first.process_epiphany(make_event(0.3))
        await first.process_epiphany(make_event(0.5))

        restored = make_scheduler(history=EpiphanyHistory(path))

        assert restored.total_epiphanies == 2
        assert restored.last_epiphany.concept == "insight at 0.5"
