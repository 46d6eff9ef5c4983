"""
Brute-force cosine similarity ranking over the stored corpus.
"""
import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Tuple, Union

import numpy as np

from .errors import MalformedVectorError, VectorAlignmentWarning
from .vectors import decode_vector

logger = logging.getLogger(__name__)

StoredVector = Union[bytes, bytearray, np.ndarray, List[float], Tuple[float, ...]]


def _as_array(vector: StoredVector) -> np.ndarray:
    if isinstance(vector, (bytes, bytearray, memoryview)):
        return decode_vector(bytes(vector))
    array = np.asarray(vector, dtype=np.float64)
    if array.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {array.shape}")
    return array


def cosine_similarity(vec1: StoredVector, vec2: StoredVector) -> float:
    """
    Calculate cosine similarity between two vectors.

    Vectors of different length are aligned by truncating the longer one,
    with a VectorAlignmentWarning.

    Args:
        vec1: First embedding vector (array, float sequence or encoded bytes)
        vec2: Second embedding vector

    Returns:
        Cosine similarity in [-1, 1]; 0.0 if either vector is empty or zero
    """
    a = _as_array(vec1).astype(np.float64)
    b = _as_array(vec2).astype(np.float64)

    if a.size == 0 or b.size == 0:
        return 0.0

    if a.size != b.size:
        size = min(a.size, b.size)
        message = f"Vectors have different dimensions ({a.size} vs {b.size}); truncating to {size}"
        logger.warning("%s", message)
        warnings.warn(message, VectorAlignmentWarning, stacklevel=2)
        a, b = a[:size], b[:size]

    norm1 = np.linalg.norm(a)
    norm2 = np.linalg.norm(b)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm1 * norm2))
    # rounding can push identical vectors a hair past 1
    return max(-1.0, min(1.0, similarity))


class SimilarityEngine:
    """
    Ranks a corpus of (id, vector) pairs against a query vector.

    Scoring is a pure map over candidates, so it can run on a thread pool;
    the ranking is identical either way.
    """

    def __init__(self, max_workers: Optional[int] = None):
        """
        Args:
            max_workers: Thread pool size for scoring; None or 1 scores inline
        """
        self.max_workers = max_workers

    def _score_one(self, query: np.ndarray, candidate_id: Any, vector: StoredVector) -> Optional[float]:
        try:
            return cosine_similarity(query, vector)
        except (MalformedVectorError, ValueError, TypeError) as e:
            logger.warning("Skipping candidate %s: %s", candidate_id, e)
            return None

    def score(
        self,
        query: StoredVector,
        corpus: Iterable[Tuple[Any, StoredVector]],
        top_k: Optional[int] = None
    ) -> List[Tuple[Any, float]]:
        """
        Score and rank the corpus against the query.

        Args:
            query: Query vector
            corpus: (id, vector) pairs in corpus order
            top_k: Number of results to keep; None keeps all

        Returns:
            (id, similarity) tuples sorted by similarity descending, ties in
            corpus order
        """
        if top_k is not None and top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")

        query_vector = _as_array(query)
        items = list(corpus)

        if self.max_workers and self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                scores = list(executor.map(
                    lambda item: self._score_one(query_vector, item[0], item[1]), items
                ))
        else:
            scores = [self._score_one(query_vector, cid, vec) for cid, vec in items]

        scored = [
            (candidate_id, score)
            for (candidate_id, _), score in zip(items, scores)
            if score is not None
        ]
        skipped = len(items) - len(scored)
        if skipped:
            logger.warning("Skipped %d of %d candidates during scoring", skipped, len(items))

        # sorted() is stable, so equal scores keep corpus order
        ranked = sorted(scored, key=lambda pair: pair[1], reverse=True)
        return ranked if top_k is None else ranked[:top_k]


_default_engine = SimilarityEngine()


def rank_by_similarity(
    query: StoredVector,
    corpus: Iterable[Tuple[Any, StoredVector]],
    top_k: Optional[int] = None
) -> List[Tuple[Any, float]]:
    """Convenience wrapper around a shared single-threaded engine."""
    return _default_engine.score(query, corpus, top_k)
