"""
mdrag - Markdown Retrieval Pipeline

Chunks text documents into overlapping windows, embeds them through an
Ollama embedding model, stores the vectors in a SQL database and answers
similarity queries by brute-force cosine ranking, optionally refined by a
cross-encoder reranker.
"""

__version__ = "0.1.0"

from .chunking import Chunk, TextChunker, chunk_text
from .embedding import EmbeddingClient
from .errors import (
    ChunkingError,
    EmbeddingProviderError,
    EmbeddingTimeoutError,
    InvalidRequestError,
    MalformedVectorError,
    RagError,
    RerankProviderError,
    RerankTimeoutError,
    VectorAlignmentWarning,
)
from .indexing import DocumentIndexer, IngestionReport
from .reranker import HttpReranker, Reranker, RerankOutcome
from .retrieve import DocumentRetriever, ScoredCandidate, SearchStage, format_results
from .scanner import FileScanner, SourceFile
from .schemas import SearchRequest
from .similarity import SimilarityEngine, cosine_similarity, rank_by_similarity
from .store import StoredChunk, VectorStore
from .vectors import decode_vector, encode_vector

__all__ = [
    "Chunk",
    "TextChunker",
    "chunk_text",
    "encode_vector",
    "decode_vector",
    "EmbeddingClient",
    "cosine_similarity",
    "rank_by_similarity",
    "SimilarityEngine",
    "Reranker",
    "HttpReranker",
    "RerankOutcome",
    "VectorStore",
    "StoredChunk",
    "FileScanner",
    "SourceFile",
    "DocumentIndexer",
    "IngestionReport",
    "DocumentRetriever",
    "ScoredCandidate",
    "SearchStage",
    "SearchRequest",
    "format_results",
    "RagError",
    "ChunkingError",
    "MalformedVectorError",
    "EmbeddingProviderError",
    "EmbeddingTimeoutError",
    "InvalidRequestError",
    "RerankProviderError",
    "RerankTimeoutError",
    "VectorAlignmentWarning",
]
