"""
Command-line entry point.

    mdrag ingest ./notes
    mdrag query "how do I rotate keys" -k 3 --rerank
    mdrag stats
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from .chunking import TextChunker
from .config import Settings, get_settings
from .embedding import EmbeddingClient
from .errors import ConfigurationError, RagError
from .indexing import DocumentIndexer, print_summary
from .reranker import HttpReranker
from .retrieve import DocumentRetriever, format_results
from .scanner import FileScanner
from .similarity import SimilarityEngine
from .store import VectorStore

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Configure root logging once for command-line use."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


class Components:
    """Explicitly wired pipeline collaborators."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.store = VectorStore(settings.database_url)
        self.embedder = EmbeddingClient(
            base_url=settings.ollama_url,
            model=settings.embedding_model,
            retries=settings.embedding_retries,
            base_delay=settings.retry_base_delay,
            connect_timeout=settings.connect_timeout,
            request_timeout=settings.request_timeout
        )
        self.reranker = (
            HttpReranker(settings.reranker_url, timeout=settings.rerank_timeout)
            if settings.reranker_enabled else None
        )
        self.retriever = DocumentRetriever(
            self.store,
            self.embedder,
            reranker=self.reranker,
            engine=SimilarityEngine(max_workers=settings.max_workers)
        )

    def indexer(self, show_progress: bool = True) -> DocumentIndexer:
        return DocumentIndexer(
            self.store,
            self.embedder,
            chunker=TextChunker(self.settings.chunk_size, self.settings.chunk_overlap),
            max_workers=self.settings.max_workers,
            show_progress=show_progress
        )

    def close(self):
        self.embedder.close()
        if self.reranker is not None:
            self.reranker.close()
        self.store.close()


def build_components(settings: Optional[Settings] = None) -> Components:
    return Components(settings or get_settings())


def run_ingest(components: Components, folder: str) -> int:
    if not os.path.isdir(folder):
        print(f"Error: '{folder}' is not a directory")
        return 1

    scanner = FileScanner(components.settings.file_extensions)
    stats = components.indexer().ingest_directory(folder, scanner)
    if not stats["files"]:
        print("No matching files found in the specified directory")
        return 0
    print_summary(stats)
    return 0 if stats["failed"] == 0 else 2


def run_query(components: Components, query: str, top_k: int, rerank: bool) -> int:
    store = components.store
    chunk_count = store.chunk_count()
    if chunk_count == 0:
        print("Database is empty. Please ingest some documents first using the ingest command.")
        return 0

    print(f"Database contains {chunk_count} chunks from {store.document_count()} documents")
    print(f"\nSearching for: \"{query}\"\n")

    results = components.retriever.search(query, top_k, use_reranker=rerank)
    if not results:
        print("No results found.")
        return 0

    print("\n" + "═" * 80)
    print(f"  Found {len(results)} results")
    print("═" * 80)
    print(format_results(results))
    return 0


def run_stats(components: Components) -> int:
    store = components.store
    doc_count = store.document_count()
    chunk_count = store.chunk_count()

    print("\n=== Database Statistics ===")
    print(f"Documents: {doc_count}")
    print(f"Chunks: {chunk_count}")
    if doc_count > 0:
        print(f"Average chunks per document: {chunk_count / doc_count:.2f}")
    print(f"Database: {store.database_url}")
    return 0


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdrag",
        description="Ingest markdown files and run similarity search over them"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest files from a folder into the database")
    ingest.add_argument("folder", help="Folder to scan recursively")

    query = subparsers.add_parser("query", help="Search for similar content")
    query.add_argument("text", help="Search query")
    query.add_argument(
        "-k", "--top-k",
        type=int,
        default=settings.default_top_k,
        help=f"Number of results (default: {settings.default_top_k})"
    )
    query.add_argument(
        "-r", "--rerank",
        action="store_true",
        help="Refine results with the reranker (requires RERANKER_ENABLED)"
    )

    subparsers.add_parser("stats", help="Show database statistics")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 1
    args = build_parser(settings).parse_args(argv)
    configure_logging(settings.log_level)

    components = build_components(settings)
    try:
        if args.command == "ingest":
            return run_ingest(components, args.folder)
        if args.command == "query":
            return run_query(components, args.text, args.top_k, args.rerank)
        return run_stats(components)
    except RagError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}")
        return 1
    finally:
        components.close()


if __name__ == "__main__":
    sys.exit(main())
