"""
Integration tests for the spark pipeline over SQLite
"""

from pathlib import Path

import pytest
import pytest_asyncio

from spark_fusion.core.models import ConceptType
from spark_fusion.session import create_session


@pytest_asyncio.fixture
async def session(tmp_path: Path):
    """Session over a temporary database and history snapshot"""
    session = await create_session(
        db_path=tmp_path / "memory.db",
        history_path=tmp_path / "history.json",
    )
    yield session
    await session.close()


@pytest.mark.asyncio
async def test_cycle_fuses_recent_memories(session):
    """Two related messages produce an epiphany about their shared concept"""
    await session.store.ingest("I love machine learning")
    await session.store.ingest("Machine learning is fascinating")

    concepts = await session.scheduler.signals.recent_concepts()
    assert [c.content.lower() for c in concepts] == ["machine learning", "machine learning"]
    assert all(c.importance >= 0.5 for c in concepts)

    event = await session.scheduler.run_cycle()

    assert event is not None
    assert "machine learning" in event.concept.lower()
    assert session.scheduler.total_epiphanies >= 1

    stored = await session.store.search("EPIPHANY")
    assert any(node.metadata.get("epiphany_id") == str(event.id) for node in stored)

    print(f"✅ Epiphany: {event.concept[:80]}")


@pytest.mark.asyncio
async def test_similar_messages_are_associated(session):
    first = await session.store.ingest("machine learning is fun")
    second = await session.store.ingest("machine learning is hard")

    associated = await session.store.associated(second.id)

    assert first.id in [node.id for node in associated]


@pytest.mark.asyncio
async def test_contextual_spark(session):
    await session.store.ingest("Training neural networks requires gradient descent")

    insight = await session.scheduler.trigger_contextual_spark("How do neural networks learn?")

    assert insight is not None
    assert insight.startswith("Contextual synthesis of 'How do neural networks learn?'")
    assert session.scheduler.last_epiphany.concept_type == ConceptType.CONTEXTUAL


@pytest.mark.asyncio
async def test_state_survives_restart(tmp_path: Path):
    """Nodes, connections and epiphany history are reloaded by a new session"""
    db_path = tmp_path / "memory.db"
    history_path = tmp_path / "history.json"

    first = await create_session(db_path=db_path, history_path=history_path)
    await first.store.ingest("I love machine learning")
    await first.store.ingest("Machine learning is fascinating")
    await first.scheduler.run_cycle()
    total = first.scheduler.total_epiphanies
    edges = len(first.store.graph)
    await first.close()

    second = await create_session(db_path=db_path, history_path=history_path)
    try:
        assert second.scheduler.total_epiphanies == total
        assert len(second.store.graph) == edges
        assert len(second.store.index) >= 2
    finally:
        await second.close()
