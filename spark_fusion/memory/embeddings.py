"""
Text Embedders

Two backends behind one interface:

- HashingEmbedder: hashed bag of words, no model download, stable across
  processes (sha256, not the salted builtin hash). Used by default and
  in tests.
- SentenceTransformerEmbedder: all-MiniLM-L6-v2 via sentence-transformers
  (install the `embeddings` extra). Lazy-loads the model on first use.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
from loguru import logger

from spark_fusion.core.config import settings


class Embedder(ABC):
    """Maps text to a fixed-dimension, L2-normalized vector"""

    def __init__(self, dimension: int):
        self.dimension = dimension

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        pass

    async def aembed(self, text: str) -> List[float]:
        """Non-blocking version of embed: runs in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.embed, text)


def _normalize(vec: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        return vec
    return vec / norm


class HashingEmbedder(Embedder):
    """Each lowercase token adds 1.0 to bucket sha256(token) mod dimension"""

    def __init__(self, dimension: Optional[int] = None):
        super().__init__(dimension or settings.EMBEDDING_DIMENSION)

    def _bucket(self, token: str) -> int:
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big") % self.dimension

    def embed(self, text: str) -> List[float]:
        vec = np.zeros(self.dimension, dtype=np.float64)
        for token in text.lower().split():
            vec[self._bucket(token)] += 1.0
        return _normalize(vec).tolist()


class SentenceTransformerEmbedder(Embedder):
    """Semantic embeddings from a sentence-transformers model"""

    def __init__(self, model_name: Optional[str] = None, dimension: Optional[int] = None):
        super().__init__(dimension or settings.EMBEDDING_DIMENSION)
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self._model = None

    def _load_model(self):
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name)

    def _get_model(self):
        """Lazy-load sentence-transformers model."""
        if self._model is None:
            self._model = self._load_model()
            self.dimension = self._model.get_sentence_embedding_dimension()
            logger.info(f"Loaded embedding model: {self.model_name} ({self.dimension} dims)")
        return self._model

    def embed(self, text: str) -> List[float]:
        model = self._get_model()
        vec = model.encode(text, normalize_embeddings=True)
        return np.asarray(vec, dtype=np.float64).tolist()
