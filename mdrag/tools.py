"""
Tool-call adapter exposing search to an agent as the ``rag_data`` tool.
"""
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .errors import InvalidRequestError
from .retrieve import DocumentRetriever, format_results
from .schemas import SearchRequest
from .store import VectorStore

logger = logging.getLogger(__name__)

TOOL_NAME = "rag_data"
TOOL_DESCRIPTION = "Tool to get additional data"

EMPTY_DATABASE_MESSAGE = (
    "Database is empty. Please ingest some documents first using the Embeddings option."
)
NO_RESULTS_MESSAGE = "No results found."


def parse_arguments(arguments: Optional[Mapping[str, Any]]) -> SearchRequest:
    """
    Validate loosely typed tool arguments.

    Raises:
        InvalidRequestError: If the arguments do not form a valid search
    """
    try:
        return SearchRequest.model_validate(dict(arguments or {}))
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid {TOOL_NAME} arguments: {e}") from e


def rag_data(
    arguments: Optional[Mapping[str, Any]],
    retriever: DocumentRetriever,
    store: VectorStore
) -> str:
    """Handle a ``rag_data`` tool call and return the text response."""
    request = parse_arguments(arguments)

    chunk_count = store.chunk_count()
    if chunk_count == 0:
        return EMPTY_DATABASE_MESSAGE
    logger.info(
        "Database contains %d chunks from %d documents", chunk_count, store.document_count()
    )

    results = retriever.search_request(request)
    if not results:
        return NO_RESULTS_MESSAGE
    return format_results(results)
