"""
Signal gathering for fusion cycles

Turns the memory store into fusion inputs: recent concepts, keyword
clusters, conversation patterns, cross-modal signals and semantic
neighbors. The pure helpers work on node lists in chronological order
(oldest first); SignalGatherer pulls the windows from the store.
"""

from typing import Dict, List, Optional, Sequence
from uuid import UUID

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.core.models import (
    ConversationPattern,
    CrossModalConcept,
    MemoryConcept,
    MemoryNode,
    Modality,
    PatternType,
    SemanticCluster,
    SemanticNeighbor,
)
from spark_fusion.extraction.concept_extractor import ConceptExtractor
from spark_fusion.extraction.keywords import extract_keywords, primary_topic
from spark_fusion.memory.memory_store import MemoryStore
from spark_fusion.memory.similarity_index import jaccard_text_similarity

VISUAL_KEYWORDS = (
    "image", "picture", "visual", "see", "look", "show", "display",
    "screenshot", "photo", "diagram", "chart", "graph",
)

STRUCTURE_MARKERS = ("1.", "•", "-", "##")
LONG_MESSAGE_CHARS = 500


# ========== CLUSTERS ==========


def keyword_buckets(nodes: Sequence[MemoryNode]) -> Dict[str, List[UUID]]:
    """Keyword -> ids of the nodes using it, in first-seen keyword order"""
    buckets: Dict[str, List[UUID]] = {}
    for node in nodes:
        for keyword in dict.fromkeys(extract_keywords(node.content)):
            buckets.setdefault(keyword, []).append(node.id)
    return buckets


def cluster_coherence(member_ids: Sequence[UUID], nodes: Sequence[MemoryNode]) -> float:
    """Mean pairwise Jaccard of member contents; 0.0 below two members"""
    wanted = set(member_ids)
    members = [n for n in nodes if n.id in wanted]
    if len(members) < 2:
        return 0.0

    total = 0.0
    comparisons = 0
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            total += jaccard_text_similarity(members[i].content, members[j].content)
            comparisons += 1
    return total / comparisons


def build_clusters(nodes: Sequence[MemoryNode], count: int) -> List[SemanticCluster]:
    buckets = keyword_buckets(nodes)
    ranked = sorted(buckets.items(), key=lambda item: len(item[1]), reverse=True)
    return [
        SemanticCluster(
            theme=keyword,
            memory_ids=ids,
            coherence=cluster_coherence(ids, nodes),
        )
        for keyword, ids in ranked[:count]
    ]


# ========== CONVERSATION PATTERNS ==========


def question_response_patterns(messages: Sequence[MemoryNode]) -> List[ConversationPattern]:
    """A user message containing '?' directly followed by a non-user reply"""
    patterns = []
    for current, following in zip(messages, messages[1:]):
        if not (current.is_user and "?" in current.content and not following.is_user):
            continue
        question = current.content
        response = following.content
        significance = min(
            len(question.split(" ")) / 20.0 + len(response.split(" ")) / 50.0,
            1.0,
        )
        patterns.append(
            ConversationPattern(
                pattern_type=PatternType.QUESTION_RESPONSE,
                description=f"Q: {question[:50]}... A: {response[:50]}...",
                frequency=1.0,
                contextual_significance=significance,
            )
        )
    return patterns


def topic_transition_patterns(messages: Sequence[MemoryNode]) -> List[ConversationPattern]:
    """Consecutive messages whose primary keyword differs"""
    topics = [primary_topic(m.content) for m in messages]
    return [
        ConversationPattern(
            pattern_type=PatternType.TOPIC_TRANSITION,
            description=f"Topic shift: {before} → {after}",
            frequency=1.0,
            contextual_significance=0.7,
        )
        for before, after in zip(topics, topics[1:])
        if before != after
    ]


# ========== CROSS-MODAL ==========


def visual_correlations(
    messages: Sequence[MemoryNode],
    extractor: ConceptExtractor,
    limit: int,
) -> List[CrossModalConcept]:
    """
    Messages that reference visual material, tied to their top concepts.

    Strength grows with the number of distinct visual words:
    min(0.9, 0.6 + 0.1 * hits).
    """
    correlations = []
    for message in messages:
        if len(correlations) >= limit:
            break
        lowered = message.content.lower()
        hits = sum(1 for word in VISUAL_KEYWORDS if word in lowered)
        if not hits:
            continue

        top = " and ".join(c.text for c in extractor.extract(message.content)[:2])
        correlations.append(
            CrossModalConcept(
                primary_modality=Modality.VISION,
                secondary_modality=Modality.TEXT,
                correlation=f"Visual reference to {top}",
                description=(
                    "Message contains visual elements correlated with "
                    f"textual concepts: {top}"
                ),
                strength=min(0.9, 0.6 + 0.1 * hits),
            )
        )
    return correlations


def _is_structured(content: str) -> bool:
    return any(marker in content for marker in STRUCTURE_MARKERS) or len(content) > LONG_MESSAGE_CHARS


def document_correlations(messages: Sequence[MemoryNode], limit: int) -> List[CrossModalConcept]:
    """Groups of 2+ structured messages sharing a primary topic, most relevant first"""
    groups: Dict[str, List[MemoryNode]] = {}
    for message in messages:
        if _is_structured(message.content):
            groups.setdefault(primary_topic(message.content), []).append(message)

    found = []
    for topic, members in groups.items():
        if len(members) < 2:
            continue
        average_length = sum(len(m.content) for m in members) // len(members)
        found.append(
            CrossModalConcept(
                primary_modality=Modality.DOCUMENT,
                secondary_modality=Modality.TEXT,
                correlation=topic,
                description=(
                    "Document-like content pattern found in conversations: "
                    f"Structured content pattern with {len(members)} related messages"
                ),
                strength=min(1.0, average_length / 1000.0),
            )
        )

    found.sort(key=lambda c: c.strength, reverse=True)
    return found[:limit]


# ========== GATHERER ==========


class SignalGatherer:
    """Reads fusion inputs out of the memory store"""

    def __init__(self, store: MemoryStore, extractor: ConceptExtractor) -> None:
        self.store = store
        self.extractor = extractor

    async def _chronological(self, limit: int) -> List[MemoryNode]:
        return list(reversed(await self.store.recent(limit)))

    async def recent_concepts(self, limit: Optional[int] = None) -> List[MemoryConcept]:
        """Top concept of each of the newest memories, newest first"""
        limit = limit or settings.RECENT_CONCEPT_LIMIT
        concepts = []
        for node in await self.store.recent(limit):
            top = self.extractor.top_concept(node.content)
            if top is None:
                continue
            concepts.append(
                MemoryConcept(
                    memory_id=node.id,
                    content=top.text,
                    concept_type=top.concept_type,
                    importance=top.importance,
                    timestamp=node.created_at,
                )
            )
        return concepts

    async def semantic_clusters(self, count: Optional[int] = None) -> List[SemanticCluster]:
        nodes = await self._chronological(settings.CLUSTER_MEMORY_WINDOW)
        return build_clusters(nodes, count or settings.CLUSTER_COUNT)

    async def conversation_patterns(self) -> List[ConversationPattern]:
        messages = await self._chronological(settings.PATTERN_MESSAGE_WINDOW)
        return question_response_patterns(messages) + topic_transition_patterns(messages)

    async def cross_modal_concepts(self) -> List[CrossModalConcept]:
        limit = settings.CROSS_MODAL_LIMIT
        visual = visual_correlations(
            await self._chronological(settings.VISUAL_SCAN_WINDOW), self.extractor, limit
        )
        documents = document_correlations(
            await self._chronological(settings.CLUSTER_MEMORY_WINDOW), limit
        )
        return visual + documents

    async def relevant_memories(self, text: str, limit: Optional[int] = None) -> List[MemoryNode]:
        return await self.store.search(text, limit or settings.RELATED_MEMORY_LIMIT)

    async def semantic_neighbors(self, text: str) -> List[SemanticNeighbor]:
        """For each keyword, a few matching memories scored by Jaccard, best first"""
        neighbors = []
        for keyword in extract_keywords(text):
            matches = await self.store.search(keyword, settings.NEIGHBOR_LIMIT_PER_KEYWORD)
            for node in matches:
                neighbors.append(
                    SemanticNeighbor(
                        text=node.content,
                        similarity=jaccard_text_similarity(text, node.content),
                        source_memory_id=node.id,
                    )
                )
        neighbors.sort(key=lambda n: n.similarity, reverse=True)
        logger.debug(f"Found {len(neighbors)} semantic neighbors")
        return neighbors
