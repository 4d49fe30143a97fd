"""
Memory storage, similarity and association

- MemoryStore: node and connection owner over a durable backend
- SimilarityIndex: brute-force cosine search plus text Jaccard
- AssociativeGraph: weighted directed links with reinforcement
"""

from spark_fusion.memory.similarity_index import (
    SimilarityIndex,
    cosine_similarity,
    find_similar,
    jaccard_text_similarity,
)
from spark_fusion.memory.associative_graph import AssociativeGraph
from spark_fusion.memory.embeddings import Embedder, HashingEmbedder, SentenceTransformerEmbedder
from spark_fusion.memory.memory_store import MemoryStore

__all__ = [
    "SimilarityIndex",
    "cosine_similarity",
    "find_similar",
    "jaccard_text_similarity",
    "AssociativeGraph",
    "Embedder",
    "HashingEmbedder",
    "SentenceTransformerEmbedder",
    "MemoryStore",
]
