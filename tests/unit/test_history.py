"""Unit tests for the bounded epiphany history"""

import json
from pathlib import Path

import pytest

from spark_fusion.core.models import ConceptType, EpiphanyEvent, FusionMethod
from spark_fusion.storage.history import EpiphanyHistory


def make_event(concept: str, importance: float = 0.5) -> EpiphanyEvent:
    return EpiphanyEvent(
        concept=concept,
        concept_type=ConceptType.ABSTRACT_CONCEPT,
        importance=importance,
        fusion_method=FusionMethod.MULTI_LAYERED_FUSION,
        confidence=0.5,
        novelty=0.5,
    )


class TestEpiphanyHistory:
    """Test FIFO cap and snapshot persistence"""

    @pytest.mark.asyncio
    async def test_cap_evicts_oldest(self) -> None:
        """101 appends keep events 2..101"""
        history = EpiphanyHistory(cap=100)
        for i in range(101):
            await history.append(make_event(f"event {i}"))

        assert len(history) == 100
        assert history.events[0].concept == "event 1"
        assert history.last.concept == "event 100"

    @pytest.mark.asyncio
    async def test_zero_cap_is_honoured(self) -> None:
        history = EpiphanyHistory(cap=0)
        await history.append(make_event("dropped"))

        assert history.cap == 0
        assert len(history) == 0
        assert history.last is None

    def test_default_cap(self) -> None:
        assert EpiphanyHistory().cap == 100

    @pytest.mark.asyncio
    async def test_snapshot_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        history = EpiphanyHistory(path)
        events = [make_event("one", 0.3), make_event("two", 0.9)]
        for event in events:
            await history.append(event)

        restored = EpiphanyHistory(path)
        count = restored.load()

        assert count == 2
        assert restored.events == events
        assert isinstance(json.loads(path.read_text()), list)

    @pytest.mark.asyncio
    async def test_snapshot_failure_keeps_event(self, tmp_path: Path) -> None:
        """An unwritable snapshot path is logged, the event stays in memory"""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        history = EpiphanyHistory(blocker / "history.json")

        await history.append(make_event("kept"))

        assert len(history) == 1
        assert history.last.concept == "kept"

    def test_load_missing_file(self, tmp_path: Path) -> None:
        history = EpiphanyHistory(tmp_path / "absent.json")

        assert history.load() == 0
        assert history.events == []

    def test_load_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text("{not json")

        assert EpiphanyHistory(path).load() == 0

    @pytest.mark.asyncio
    async def test_recent(self) -> None:
        history = EpiphanyHistory(cap=10)
        for i in range(5):
            await history.append(make_event(str(i)))

        assert [e.concept for e in history.recent(2)] == ["3", "4"]
        assert history.recent(0) == []
