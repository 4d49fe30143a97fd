"""
Concept Fusion Engine

Synthesizes EpiphanyEvents from gathered signals. Every score is a pure
function of the inputs:

    confidence (multi-layered) = min(n/10, .4) + min(c/5, .3) + min(p/3, .2) + min(x/2, .1)
    confidence (contextual)    = min(1, memories/10 + concepts/5)
    novelty                    = 1 - max Jaccard(insight, reference texts)
    importance (multi-layered) = min(1, .4 conf + .4 nov + min(n/20, .2))
    importance (contextual)    = min(1, .5 conf + .3 nov + min(memories/15, .2))

Only the flavor phrases in contextual conclusions and chain extensions
are chosen, never computed. See PhraseSelector.
"""

import hashlib
import random
from collections import Counter
from typing import List, Optional, Sequence

from loguru import logger

from spark_fusion.core.config import settings
from spark_fusion.core.models import (
    ConceptRelationship,
    ConceptType,
    CrossModalConcept,
    ConversationPattern,
    EpiphanyEvent,
    ExtractedConcept,
    FusionMethod,
    MemoryConcept,
    MemoryNode,
    SemanticCluster,
    SemanticNeighbor,
)
from spark_fusion.memory.similarity_index import jaccard_text_similarity, max_jaccard

CONCLUSIONS = [
    "novel approaches to understanding",
    "deeper systemic connections",
    "emergent problem-solving strategies",
    "innovative conceptual frameworks",
    "enhanced cognitive pathways",
]

BRANCHING_STRATEGIES = [
    "recursive deepening",
    "lateral exploration",
    "emergent synthesis",
    "pattern extrapolation",
    "meta-cognitive analysis",
]

CHAIN_EXTENSIONS = [
    "fractal patterns emerging at deeper cognitive levels",
    "recursive loops revealing hidden system dynamics",
    "meta-patterns connecting previously isolated concepts",
    "emergent properties manifesting through iterative analysis",
    "higher-order relationships becoming apparent",
]

RELATIONSHIP_THRESHOLD = 0.3
MAX_FUSED_CONCEPTS = 5
NOVELTY_MEMORY_WINDOW = 20


class PhraseSelector:
    """
    Picks one phrase out of a fixed set.

    Without an rng the choice is sha256(seed) mod len(phrases), so the
    same inputs always read the same. With an rng, phrases are drawn
    uniformly from it.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng

    def choose(self, phrases: Sequence[str], seed: str) -> str:
        if self.rng is not None:
            return self.rng.choice(list(phrases))
        digest = hashlib.sha256(seed.encode("utf-8")).digest()
        return phrases[int.from_bytes(digest[:8], "big") % len(phrases)]


def relationship_label(similarity: float) -> str:
    if similarity >= 0.7:
        return "semantic convergence"
    if similarity >= 0.5:
        return "conceptual resonance"
    if similarity >= 0.3:
        return "thematic correlation"
    return "weak association"


def determine_concept_type(texts: Sequence[str]) -> ConceptType:
    """Keyword scan over the pooled concept texts"""
    pooled = " ".join(texts).lower()
    if "person" in pooled or "individual" in pooled:
        return ConceptType.PERSON
    if "place" in pooled or "location" in pooled:
        return ConceptType.LOCATION
    if "organization" in pooled or "company" in pooled:
        return ConceptType.ORGANIZATION
    return ConceptType.ABSTRACT_CONCEPT


def _memory_context(content: str) -> str:
    """First three long words joined as a pathway, else the first 100 chars"""
    words = [w for w in content.split() if len(w) > 4][:3]
    return " → ".join(words) if words else content[:100]


def _most_common_word(contexts: Sequence[str]) -> str:
    if not contexts:
        return "general pattern"
    words = (
        w.lower()
        for context in contexts
        for w in context.split()
        if any(ch.isalnum() for ch in w)
    )
    counts = Counter(words)
    if not counts:
        return "general pattern"
    return counts.most_common(1)[0][0]


class FusionEngine:
    """
    Stateless synthesis of epiphanies.

    Safe to call from several tasks at once; the phrase selector is the
    only shared object and holds no per-call state (an injected rng is
    shared as-is).
    """

    def __init__(self, phrase_selector: Optional[PhraseSelector] = None) -> None:
        if phrase_selector is None:
            phrase_selector = PhraseSelector(
                None if settings.DETERMINISTIC_PHRASES else random.Random()
            )
        self.phrases = phrase_selector
        logger.info(
            "FusionEngine initialized "
            f"({'seeded' if phrase_selector.rng is None else 'random'} phrase selection)"
        )

    # ========== MULTI-LAYERED FUSION ==========

    def fuse_multi_layered(
        self,
        concepts: Sequence[MemoryConcept],
        clusters: Sequence[SemanticCluster],
        patterns: Sequence[ConversationPattern],
        cross_modal: Sequence[CrossModalConcept],
    ) -> Optional[EpiphanyEvent]:
        """
        Fuse the five most important concepts with the surrounding signals.

        Returns None when there are no concepts.
        """
        if not concepts:
            return None

        primary = sorted(concepts, key=lambda c: c.importance, reverse=True)[:MAX_FUSED_CONCEPTS]
        texts = [c.content for c in primary]

        relationships = self.find_relationships(texts)
        insight = self._multi_layered_insight(texts, relationships, clusters, patterns, cross_modal)

        confidence = (
            min(len(concepts) / 10.0, 0.4)
            + min(len(clusters) / 5.0, 0.3)
            + min(len(patterns) / 3.0, 0.2)
            + min(len(cross_modal) / 2.0, 0.1)
        )
        novelty = 1.0 - max_jaccard(insight, texts)
        importance = min(
            confidence * 0.4 + novelty * 0.4 + min(len(concepts) / 20.0, 0.2),
            1.0,
        )

        event = EpiphanyEvent(
            concept=insight,
            concept_type=determine_concept_type(texts),
            importance=importance,
            source_memories=[c.memory_id for c in primary],
            fusion_method=FusionMethod.MULTI_LAYERED_FUSION,
            confidence=min(confidence, 1.0),
            novelty=novelty,
        )
        logger.debug(
            f"Fused {len(primary)} concepts, {len(relationships)} relationships "
            f"(importance {importance:.3f}, novelty {novelty:.3f})"
        )
        return event

    def find_relationships(self, texts: Sequence[str]) -> List[ConceptRelationship]:
        """Every unordered pair with token Jaccard above 0.3"""
        relationships = []
        for i in range(len(texts)):
            for j in range(i + 1, len(texts)):
                similarity = jaccard_text_similarity(texts[i], texts[j])
                if similarity > RELATIONSHIP_THRESHOLD:
                    relationships.append(
                        ConceptRelationship(
                            concept1=texts[i],
                            concept2=texts[j],
                            relationship_type=relationship_label(similarity),
                            strength=similarity,
                        )
                    )
        return relationships

    def _multi_layered_insight(
        self,
        texts: Sequence[str],
        relationships: Sequence[ConceptRelationship],
        clusters: Sequence[SemanticCluster],
        patterns: Sequence[ConversationPattern],
        cross_modal: Sequence[CrossModalConcept],
    ) -> str:
        summary = ", ".join(texts[:3])
        themes = ", ".join(c.theme for c in clusters)

        if not relationships:
            insight = (
                f"Synthetic analysis reveals convergent patterns in {summary} "
                f"through {len(clusters)} semantic clusters and {len(patterns)} "
                f"conversational patterns, suggesting emergent understanding "
                f"across {len(cross_modal)} modalities"
            )
            if clusters:
                insight += f", with recurring themes of {themes}"
            return insight

        labels = " and ".join(dict.fromkeys(r.relationship_type for r in relationships))
        resonance = f"thematic resonance in {themes}" if clusters else "thematic resonance"
        return (
            f"Multi-layered synthesis identifies {labels} relationships between "
            f"{summary} across {len(clusters)} semantic clusters and {len(patterns)} "
            f"conversational patterns, creating emergent insights through {resonance} "
            f"and cross-modal integration of {len(cross_modal)} experiential dimensions"
        )

    # ========== CONTEXTUAL INSIGHT ==========

    def generate_contextual_insight(
        self,
        text: str,
        concepts: Sequence[ExtractedConcept],
        memories: Sequence[MemoryNode],
        neighbors: Sequence[SemanticNeighbor],
    ) -> Optional[EpiphanyEvent]:
        """
        Relate an input text to the memories it recalls.

        Returns None when both concepts and memories are empty.
        """
        if not concepts and not memories:
            return None

        top_concepts = [c.text for c in concepts[:3]]
        pathway = " → ".join(top_concepts)
        pattern = _most_common_word([_memory_context(m.content) for m in memories])
        conclusion = self.phrases.choose(CONCLUSIONS, f"{text}|{pathway}")

        insight = (
            f"Contextual synthesis of '{text[:50]}' reveals conceptual pathway: "
            f"{pathway}, resonating with memory patterns '{pattern}' across "
            f"{len(neighbors)} semantic associations, suggesting {conclusion}"
        )

        confidence = min(len(memories) / 10.0 + len(concepts) / 5.0, 1.0)
        novelty = 1.0 - max_jaccard(insight, (m.content for m in memories[:NOVELTY_MEMORY_WINDOW]))
        importance = min(
            confidence * 0.5 + novelty * 0.3 + min(len(memories) / 15.0, 0.2),
            1.0,
        )

        return EpiphanyEvent(
            concept=insight,
            concept_type=ConceptType.CONTEXTUAL,
            importance=importance,
            source_memories=[m.id for m in memories],
            fusion_method=FusionMethod.CONTEXTUAL_SYNTHESIS,
            confidence=confidence,
            novelty=novelty,
        )

    # ========== CHAINS ==========

    def generate_epiphany_chain(
        self, seed: EpiphanyEvent, depth: int, branching: int
    ) -> List[EpiphanyEvent]:
        """
        Extend a seed epiphany `depth` levels deep, `branching` per level.

        Scores attenuate with the level:
            confidence = max(.2, seed - .15 L)
            novelty    = max(.3, seed - .1 L)
            importance = max(.15, seed - .12 L)
        Each level extends the previous level's most important branch.
        Results are flattened level by level.
        """
        chain: List[EpiphanyEvent] = []
        current = seed.concept

        for level in range(depth):
            branches = []
            for branch in range(branching):
                strategy = BRANCHING_STRATEGIES[branch % len(BRANCHING_STRATEGIES)]
                extension = self.phrases.choose(
                    CHAIN_EXTENSIONS, f"{seed.id}|{level}|{branch}|{strategy}"
                )
                branches.append(
                    EpiphanyEvent(
                        concept=(
                            f"Chain extension {level + 1}.{branch + 1}: Through {strategy} "
                            f"of '{current[:30]}', we discover {extension}"
                        ),
                        concept_type=ConceptType.CHAIN_REACTION,
                        importance=max(0.15, seed.importance - level * 0.12),
                        source_memories=[seed.id],
                        fusion_method=FusionMethod.CHAIN_SYNTHESIS,
                        confidence=max(0.2, seed.confidence - level * 0.15),
                        novelty=max(0.3, seed.novelty - level * 0.1),
                    )
                )

            chain.extend(branches)
            if branches:
                current = max(branches, key=lambda e: e.importance).concept

        logger.debug(f"Generated chain of {len(chain)} events from {seed.id}")
        return chain
