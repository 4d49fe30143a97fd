"""
Brute-force Similarity Search

Cosine similarity over stored embedding vectors, plus token Jaccard
similarity for comparisons where no vectors exist (insight novelty,
cluster coherence, neighbor scoring).

Node counts here are in the hundreds, so an exact O(n) scan is used.
For larger scale, swap in FAISS or Annoy behind `SimilarityIndex`.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from spark_fusion.core.exceptions import DimensionMismatchError
from spark_fusion.core.models import MemoryNode


def _as_vector(vec: Sequence[float]) -> np.ndarray:
    return np.asarray(vec, dtype=np.float64)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 when either vector has zero norm. Raises
    DimensionMismatchError when the lengths differ.
    """
    va = _as_vector(a)
    vb = _as_vector(b)
    if va.shape != vb.shape:
        raise DimensionMismatchError(va.size, vb.size)

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    # Rounding can push |v·v| / |v|² a hair past 1
    return max(-1.0, min(1.0, similarity))


def tokenize(text: str) -> set[str]:
    """Lowercase whitespace tokens"""
    return set(text.lower().split())


def jaccard_text_similarity(text_a: str, text_b: str) -> float:
    """|A ∩ B| / |A ∪ B| over lowercase whitespace tokens; 0.0 when both are empty"""
    tokens_a = tokenize(text_a)
    tokens_b = tokenize(text_b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def max_jaccard(text: str, references: Iterable[str]) -> float:
    """Highest Jaccard similarity of `text` against any reference text"""
    return max((jaccard_text_similarity(text, ref) for ref in references), default=0.0)


def find_similar(
    query_embedding: Sequence[float],
    candidates: Iterable[MemoryNode],
    top_k: int = 5,
    min_similarity: Optional[float] = None,
) -> List[Tuple[MemoryNode, float]]:
    """
    Rank candidates by cosine similarity to the query.

    Exact scan, descending by score. Ties keep candidate order (sorted()
    is stable). Candidates without an embedding are skipped.
    """
    query = _as_vector(query_embedding)
    scored: List[Tuple[MemoryNode, float]] = []

    for node in candidates:
        if node.embedding is None:
            continue
        score = cosine_similarity(query, node.embedding)
        if min_similarity is not None and score < min_similarity:
            continue
        scored.append((node, score))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:top_k]


class SimilarityIndex:
    """
    In-memory vector index over memory nodes.

    Keeps nodes in insertion order so equal scores resolve
    deterministically. Dimension is fixed by the first vector added.
    """

    def __init__(self) -> None:
        self._nodes: dict = {}
        self.dimension: Optional[int] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    def add(self, node: MemoryNode) -> None:
        """Index a node. Nodes without embeddings are ignored."""
        if node.embedding is None:
            return
        if self.dimension is None:
            self.dimension = len(node.embedding)
        elif len(node.embedding) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(node.embedding))
        self._nodes[node.id] = node

    def remove(self, node_id) -> None:
        self._nodes.pop(node_id, None)

    def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = 5,
        min_similarity: Optional[float] = None,
        exclude=None,
    ) -> List[Tuple[MemoryNode, float]]:
        """Top-k most similar indexed nodes, optionally excluding one id"""
        candidates = (n for nid, n in self._nodes.items() if nid != exclude)
        results = find_similar(query_embedding, candidates, top_k, min_similarity)
        logger.debug(f"Similarity search over {len(self._nodes)} nodes -> {len(results)} hits")
        return results
