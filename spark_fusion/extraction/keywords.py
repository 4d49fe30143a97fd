"""Keyword and topic helpers shared by signal gathering and fallback search"""

from typing import List

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
})

MAX_KEYWORDS = 5
DEFAULT_TOPIC = "general"


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    First `limit` lowercase space-separated words longer than three
    characters that are not stop words. Duplicates are kept; order
    follows the text.
    """
    words = (w for w in text.lower().split(" ") if len(w) > 3 and w not in STOP_WORDS)
    keywords = []
    for word in words:
        keywords.append(word)
        if len(keywords) >= limit:
            break
    return keywords


def primary_topic(text: str) -> str:
    """First keyword of the text, or "general" when it has none"""
    keywords = extract_keywords(text, limit=1)
    return keywords[0] if keywords else DEFAULT_TOPIC
