"""
Query-time retrieval: embed the query, score the stored corpus and
optionally refine the shortlist with a reranker.

Pipeline:
1. EMBEDDING_QUERY  - embed the query text (failures propagate)
2. LOADING_CORPUS   - read every stored chunk; empty corpus returns []
3. SCORING          - cosine ranking; 2 * top_k candidates when reranking
4. RERANKING        - best effort; any reranker failure falls back to the
                      similarity ranking truncated to top_k
5. DONE
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np

from .errors import InvalidRequestError, RerankProviderError
from .reranker import Reranker, RerankOutcome
from .schemas import SearchRequest
from .similarity import SimilarityEngine
from .store import StoredChunk, VectorStore
from .vectors import decode_vector

logger = logging.getLogger(__name__)

RULE = "─" * 80


class SearchStage(str, Enum):
    EMBEDDING_QUERY = "embedding_query"
    LOADING_CORPUS = "loading_corpus"
    SCORING = "scoring"
    RERANKING = "reranking"
    DONE = "done"


@dataclass
class ScoredCandidate:
    """A retrieved chunk with its similarity (or reranker) score."""
    chunk: StoredChunk
    score: float
    was_reranked: bool = False

    @property
    def vector(self) -> np.ndarray:
        return decode_vector(self.chunk.vector_bytes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_id": self.chunk.chunk_id,
            "document_id": self.chunk.document_id,
            "file_name": self.chunk.file_name,
            "file_path": self.chunk.file_path,
            "chunk_index": self.chunk.chunk_index,
            "start_offset": self.chunk.start_offset,
            "end_offset": self.chunk.end_offset,
            "content": self.chunk.chunk_text,
            "score": self.score,
            "was_reranked": self.was_reranked,
        }

    def format_result(self, rank: int) -> str:
        """Render the result as a text block for people or tool responses."""
        lines = [RULE]
        if self.was_reranked:
            lines.append(f"Result #{rank} | Reranked Score: {self.score:.4f}")
            lines.append("Note: This result was re-ranked for relevance")
        else:
            lines.append(f"Result #{rank} | Similarity: {self.score:.4f}")
        lines.append(f"File: {self.chunk.file_name}")
        lines.append(f"Location: {self.chunk.file_path}:{self.chunk.start_offset}-{self.chunk.end_offset}")
        lines.append(f"Chunk #{self.chunk.chunk_index}")
        lines.append("")
        lines.append(self.chunk.chunk_text.strip())
        lines.append(RULE)
        return "\n".join(lines) + "\n"


def format_results(results: List[ScoredCandidate]) -> str:
    """Format ranked results, numbered from 1."""
    return "".join(result.format_result(rank) for rank, result in enumerate(results, 1))


class DocumentRetriever:
    """
    Similarity search over the stored corpus with optional reranking.

    The reranker is an optional capability: without one, requests for
    reranking are served from the similarity ranking.
    """

    def __init__(
        self,
        store: VectorStore,
        embedder,
        reranker: Optional[Reranker] = None,
        engine: Optional[SimilarityEngine] = None
    ):
        """
        Args:
            store: Store holding the corpus
            embedder: Object exposing ``embed(text) -> vector``
            reranker: Second-stage reranker, if one is configured
            engine: Similarity engine (single-threaded if omitted)
        """
        self.store = store
        self.embedder = embedder
        self.reranker = reranker
        self.engine = engine or SimilarityEngine()

    def _enter(self, stage: SearchStage):
        logger.debug("search stage: %s", stage.value)

    def search(self, query_text: str, top_k: int = 5, use_reranker: bool = False) -> List[ScoredCandidate]:
        """
        Search the corpus for chunks similar to the query.

        Args:
            query_text: Search query
            top_k: Number of results to return
            use_reranker: Refine the shortlist with the reranker

        Returns:
            Ranked results; empty when nothing is stored

        Raises:
            InvalidRequestError: If the query is blank or top_k < 1
            EmbeddingProviderError: If the query could not be embedded
        """
        if not query_text or not query_text.strip():
            raise InvalidRequestError("Query cannot be blank")
        if top_k < 1:
            raise InvalidRequestError(f"top_k must be at least 1, got {top_k}")
        logger.info("Searching for: %s, use_reranker: %s", query_text, use_reranker)

        self._enter(SearchStage.EMBEDDING_QUERY)
        query_vector = self.embedder.embed(query_text)

        self._enter(SearchStage.LOADING_CORPUS)
        corpus = self.store.get_all_chunks_with_vectors()
        logger.info("Retrieved %d chunks from database", len(corpus))
        if not corpus:
            logger.warning("No chunks found in database")
            self._enter(SearchStage.DONE)
            return []

        rerank = use_reranker and self.reranker is not None
        if use_reranker and self.reranker is None:
            logger.info("Reranking requested but no reranker is configured")

        self._enter(SearchStage.SCORING)
        limit = top_k * 2 if rerank else top_k
        ranked = self.engine.score(
            query_vector,
            ((position, chunk.vector_bytes) for position, chunk in enumerate(corpus)),
            limit
        )
        candidates = [
            ScoredCandidate(chunk=corpus[position], score=score)
            for position, score in ranked
        ]

        if rerank and candidates:
            self._enter(SearchStage.RERANKING)
            candidates = self._rerank(query_text, candidates, top_k)

        self._enter(SearchStage.DONE)
        return candidates

    def search_request(self, request: SearchRequest) -> List[ScoredCandidate]:
        """Run a validated search request."""
        return self.search(request.query, request.top_k, request.use_reranker)

    def _rerank(self, query_text: str, candidates: List[ScoredCandidate], top_k: int) -> List[ScoredCandidate]:
        logger.info("Reranking %d results", len(candidates))
        documents = [candidate.chunk.chunk_text for candidate in candidates]

        try:
            outcomes = self.reranker.rerank(query_text, documents, top_k)
            reranked = self._attach(outcomes, candidates, top_k)
        except Exception:
            logger.exception("Reranking failed, using similarity ranking")
            return candidates[:top_k]

        logger.info("Reranking completed, returning %d results", len(reranked))
        return reranked

    @staticmethod
    def _attach(outcomes: List[RerankOutcome], candidates: List[ScoredCandidate], top_k: int) -> List[ScoredCandidate]:
        if not outcomes:
            raise RerankProviderError("Reranker returned no results")
        reranked = []
        for outcome in outcomes[:top_k]:
            if not 0 <= outcome.original_index < len(candidates):
                raise RerankProviderError(f"Reranker returned unknown index {outcome.original_index}")
            original = candidates[outcome.original_index]
            reranked.append(ScoredCandidate(
                chunk=original.chunk,
                score=outcome.relevance_score,
                was_reranked=True
            ))
        return reranked
