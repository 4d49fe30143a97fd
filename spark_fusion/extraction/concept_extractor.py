"""Typed, importance-scored concept extraction from raw text"""

import string
from typing import List, Optional

from loguru import logger

from spark_fusion.core.models import ConceptType, ExtractedConcept
from spark_fusion.extraction.tagger import (
    HeuristicTagger,
    LexicalClass,
    NameTag,
    Tagger,
    TaggedToken,
)


class ConceptExtractor:
    """
    Three passes over the text, merged and stable-sorted by importance:

    1. Named entities from the tagger's name spans
    2. Significant single words (nouns, verbs, adjectives)
    3. Known two-word compound phrases, line by line

    Deterministic for a given tagger.
    """

    SIGNIFICANT_WORDS = frozenset({
        "analyze", "understand", "create", "develop", "system", "process",
        "strategy", "solution", "insight", "pattern", "relationship",
        "framework", "approach", "method", "technique", "innovation",
        "concept", "theory", "principle", "model",
    })

    SIGNIFICANT_PHRASES = frozenset({
        "machine learning", "artificial intelligence", "data analysis",
        "problem solving", "decision making", "natural language",
        "deep learning", "neural network", "cognitive process", "system design",
    })

    ENTITY_BOOST = {
        NameTag.PERSON: 0.4,
        NameTag.ORGANIZATION: 0.3,
        NameTag.PLACE: 0.2,
        NameTag.OTHER: 0.1,
    }

    ENTITY_TYPES = {
        NameTag.PERSON: ConceptType.PERSON,
        NameTag.ORGANIZATION: ConceptType.ORGANIZATION,
        NameTag.PLACE: ConceptType.LOCATION,
        NameTag.OTHER: ConceptType.ENTITY,
    }

    CONTENT_CLASSES = (LexicalClass.NOUN, LexicalClass.VERB, LexicalClass.ADJECTIVE)

    def __init__(self, tagger: Optional[Tagger] = None) -> None:
        self.tagger = tagger or HeuristicTagger()
        logger.info(f"ConceptExtractor initialized with {type(self.tagger).__name__}")

    def extract(self, text: str) -> List[ExtractedConcept]:
        """Extract concepts, most important first. Empty text gives []."""
        if not text or not text.strip():
            return []

        concepts: List[ExtractedConcept] = []
        concepts.extend(self._extract_entities(text))
        concepts.extend(self._extract_semantic_words(text, self.tagger.tag(text)))
        concepts.extend(self._extract_compounds(text))

        concepts.sort(key=lambda c: c.importance, reverse=True)
        logger.debug(f"Extracted {len(concepts)} concepts from {len(text)} chars")
        return concepts

    def top_concept(self, text: str) -> Optional[ExtractedConcept]:
        concepts = self.extract(text)
        return concepts[0] if concepts else None

    # ========== PASSES ==========

    def _extract_entities(self, text: str) -> List[ExtractedConcept]:
        lowered = text.lower()
        entities = []

        for span in self.tagger.name_spans(text):
            occurrences = lowered.count(span.text.lower())
            importance = 0.3 + self.ENTITY_BOOST[span.tag] + min(occurrences * 0.1, 0.3)
            entities.append(
                ExtractedConcept(
                    text=span.text,
                    concept_type=self.ENTITY_TYPES[span.tag],
                    importance=min(importance, 1.0),
                    source_span=(span.start, span.end),
                )
            )

        return entities

    def _extract_semantic_words(
        self, text: str, tokens: List[TaggedToken]
    ) -> List[ExtractedConcept]:
        lowered = text.lower()
        concepts = []

        for token in tokens:
            if token.lexical_class not in self.CONTENT_CLASSES:
                continue
            if not self._is_significant(token):
                continue

            frequency = lowered.count(token.text.lower())
            length_bonus = min(len(token.text) / 15.0, 0.3)
            concepts.append(
                ExtractedConcept(
                    text=token.text,
                    concept_type=ConceptType.ABSTRACT_CONCEPT,
                    importance=min(0.4 + frequency * 0.05 + length_bonus, 1.0),
                    source_span=(token.start, token.end),
                )
            )

        return concepts

    def _is_significant(self, token: TaggedToken) -> bool:
        if len(token.text) <= 3:
            return False
        lemma = token.lemma or self.tagger.lemmatize(token.text)
        return token.text.lower() in self.SIGNIFICANT_WORDS or lemma in self.SIGNIFICANT_WORDS

    def _extract_compounds(self, text: str) -> List[ExtractedConcept]:
        lowered = text.lower()
        compounds = []
        line_offset = 0

        for line in text.splitlines(keepends=True):
            words = [w.strip(string.punctuation) for w in line.split()]

            for first, second in zip(words, words[1:]):
                phrase = f"{first} {second}"
                if phrase.lower() not in self.SIGNIFICANT_PHRASES:
                    continue

                position = line.find(phrase)
                if position >= 0:
                    span = (line_offset + position, line_offset + position + len(phrase))
                else:
                    span = (line_offset, line_offset + len(line.rstrip("\r\n")))

                relevance = 0.2 if phrase.lower() in lowered else 0.0
                compounds.append(
                    ExtractedConcept(
                        text=phrase,
                        concept_type=ConceptType.ABSTRACT_CONCEPT,
                        importance=min(0.5 + 0.2 + relevance, 1.0),
                        source_span=span,
                    )
                )

            line_offset += len(line)

        return compounds
