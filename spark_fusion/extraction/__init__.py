"""Concept extraction: tagging, keywords and scored concepts"""

from spark_fusion.extraction.tagger import (
    Tagger,
    HeuristicTagger,
    SpacyTagger,
    TaggedToken,
    NameSpan,
    NameTag,
    LexicalClass,
)
from spark_fusion.extraction.keywords import STOP_WORDS, extract_keywords, primary_topic
from spark_fusion.extraction.concept_extractor import ConceptExtractor

__all__ = [
    "Tagger",
    "HeuristicTagger",
    "SpacyTagger",
    "TaggedToken",
    "NameSpan",
    "NameTag",
    "LexicalClass",
    "STOP_WORDS",
    "extract_keywords",
    "primary_topic",
    "ConceptExtractor",
]
