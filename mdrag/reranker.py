"""
Second-stage reranking through a cross-encoder HTTP service.

The service receives the query and the candidate texts and answers with the
candidates in relevance order, each tagged with its position in the
submitted list.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

import requests
from pydantic import ValidationError

from .errors import InvalidRequestError, RerankProviderError, RerankTimeoutError
from .schemas import RerankRequest, RerankResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RerankOutcome:
    """Reranker score for the candidate at ``original_index`` of the request"""
    original_index: int
    relevance_score: float
    document: Optional[str] = None
    rank: Optional[int] = None


class Reranker(ABC):
    """Contract for reranking providers."""

    @abstractmethod
    def rerank(
        self,
        query: str,
        documents: Sequence[str],
        top_k: Optional[int] = None
    ) -> List[RerankOutcome]:
        raise NotImplementedError


def validate_rerank_request(query: str, documents: Sequence[str], top_k: Optional[int]) -> None:
    if not query or not query.strip():
        raise InvalidRequestError("Query cannot be blank")
    if not documents:
        raise InvalidRequestError("Documents list cannot be empty")
    if top_k is not None and top_k < 1:
        raise InvalidRequestError("top_k must be greater than 0")


class HttpReranker(Reranker):
    """
    Reranker backed by the ``/rerank`` HTTP endpoint.

    One round trip per call and no retry: callers fall back to the
    first-stage ranking instead.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8002",
        timeout: float = 60.0,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rerank"

    def rerank(
        self,
        query: str,
        documents: Sequence[str],
        top_k: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[RerankOutcome]:
        """
        Rerank documents against the query.

        Args:
            query: Search query
            documents: Candidate texts; result indices refer to this order
            top_k: Number of results the provider should return
            timeout: Per-call timeout in seconds

        Returns:
            Outcomes in the provider's relevance order

        Raises:
            InvalidRequestError: If the query is blank or documents is empty
            RerankTimeoutError: If the call timed out
            RerankProviderError: For any other provider failure
        """
        validate_rerank_request(query, documents, top_k)
        logger.info("Sending rerank request with %d documents", len(documents))

        payload = RerankRequest(query=query, documents=list(documents), top_k=top_k)
        try:
            response = self.session.post(
                self.endpoint,
                json=payload.model_dump(),
                timeout=timeout if timeout is not None else self.timeout
            )
            response.raise_for_status()
            body = RerankResponse.model_validate(response.json())
        except requests.Timeout as e:
            logger.error("Rerank request timed out: %s", e)
            raise RerankTimeoutError(f"Rerank request timed out: {e}") from e
        except (requests.RequestException, ValidationError, ValueError) as e:
            logger.error("Error during rerank request: %s", e)
            raise RerankProviderError(f"Failed to rerank documents: {e}") from e

        outcomes = []
        for result in body.results:
            if result.index >= len(documents):
                raise RerankProviderError(
                    f"Reranker returned index {result.index} for {len(documents)} documents"
                )
            outcomes.append(RerankOutcome(
                original_index=result.index,
                relevance_score=result.score,
                document=result.document,
                rank=result.rank
            ))

        logger.info("Received rerank response with %d results", len(outcomes))
        return outcomes

    def rerank_documents(self, query: str, documents: Sequence[str], top_k: int) -> List[str]:
        """Rerank and return only the document texts, most relevant first."""
        if top_k < 1:
            raise InvalidRequestError("top_k must be greater than 0")
        return [documents[o.original_index] for o in self.rerank(query, documents, top_k)]

    def close(self):
        self.session.close()
