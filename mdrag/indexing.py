"""
Ingest source files into the vector store.

Each file is chunked, its document row is (re)created, and its chunks are
embedded on a bounded thread pool. A chunk whose embedding fails is skipped
without affecting its siblings.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from tqdm import tqdm

from .chunking import TextChunker
from .errors import EmbeddingProviderError, RagError
from .scanner import FileScanner, SourceFile
from .store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Outcome of ingesting one file"""
    file_name: str
    file_path: str
    document_id: Optional[int] = None
    chunks_total: int = 0
    chunks_saved: int = 0
    failed_chunks: List[int] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "failed"
        if self.failed_chunks:
            return "partial"
        return "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "document_id": self.document_id,
            "chunks_total": self.chunks_total,
            "chunks_saved": self.chunks_saved,
            "failed_chunks": list(self.failed_chunks),
            "error": self.error,
        }


class DocumentIndexer:
    """
    Chunk, embed and persist documents.

    The embedder is anything exposing ``embed_bytes(text) -> bytes``
    (normally an EmbeddingClient).
    """

    def __init__(
        self,
        store: VectorStore,
        embedder,
        chunker: Optional[TextChunker] = None,
        max_workers: int = 4,
        show_progress: bool = True
    ):
        """
        Args:
            store: Destination store
            embedder: Embedding client
            chunker: Chunker to split documents (512/50 if omitted)
            max_workers: Concurrent embedding calls per document
            show_progress: Display tqdm progress bars
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.store = store
        self.embedder = embedder
        self.chunker = chunker or TextChunker()
        self.max_workers = max_workers
        self.show_progress = show_progress

    def ingest_file(self, source: SourceFile) -> IngestionReport:
        """
        Ingest one file, replacing any earlier version of the same path.

        Args:
            source: File to ingest

        Returns:
            Report with the saved and failed chunk counts
        """
        chunks = self.chunker.chunk(source.content)
        logger.info("Created %d chunks for %s", len(chunks), source.file_name)

        document_id = self.store.save_document(
            source.absolute_path, source.file_name, source.modified_time
        )
        report = IngestionReport(
            file_name=source.file_name,
            file_path=source.absolute_path,
            document_id=document_id,
            chunks_total=len(chunks)
        )
        if not chunks:
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_chunk = {
                executor.submit(self.embedder.embed_bytes, chunk.text): chunk
                for chunk in chunks
            }

            with tqdm(
                total=len(chunks),
                desc=f"  Embedding {source.file_name}",
                unit="chunk",
                leave=False,
                disable=not self.show_progress
            ) as pbar:
                for future in as_completed(future_to_chunk):
                    chunk = future_to_chunk[future]
                    try:
                        vector_bytes = future.result()
                    except EmbeddingProviderError as e:
                        logger.warning(
                            "Failed to process chunk %d of %s: %s", chunk.index, source.file_name, e
                        )
                        report.failed_chunks.append(chunk.index)
                    else:
                        # chunk.index is the original position, not completion order
                        self.store.save_chunk(document_id, chunk, vector_bytes)
                        report.chunks_saved += 1
                    pbar.update(1)

        report.failed_chunks.sort()
        logger.info(
            "Completed %s: %d/%d chunks saved",
            source.file_name, report.chunks_saved, report.chunks_total
        )
        return report

    def ingest_files(self, sources: List[SourceFile]) -> Dict[str, Any]:
        """
        Ingest several files; a failing file is recorded and the run continues.

        Returns:
            Dictionary with ingestion statistics and per-file reports
        """
        reports = []
        for source in tqdm(sources, desc="Ingesting documents", unit="file", disable=not self.show_progress):
            try:
                reports.append(self.ingest_file(source))
            except (RagError, SQLAlchemyError) as e:
                logger.error("Failed to process file %s: %s", source.file_name, e)
                reports.append(IngestionReport(
                    file_name=source.file_name,
                    file_path=source.absolute_path,
                    error=str(e)
                ))

        return {
            "files": len(reports),
            "successful": sum(1 for r in reports if r.status == "success"),
            "partial": sum(1 for r in reports if r.status == "partial"),
            "failed": sum(1 for r in reports if r.status == "failed"),
            "chunks_saved": sum(r.chunks_saved for r in reports),
            "chunks_failed": sum(len(r.failed_chunks) for r in reports),
            "reports": reports,
        }

    def ingest_directory(self, folder: str, scanner: Optional[FileScanner] = None) -> Dict[str, Any]:
        """Scan a folder and ingest every matching file."""
        scanner = scanner or FileScanner()
        sources = scanner.scan_directory(folder)
        logger.info("Processing %d files from %s", len(sources), folder)
        return self.ingest_files(sources)


def print_summary(stats: Dict[str, Any]):
    """Print ingestion summary"""
    print("\n" + "=" * 60)
    print("Ingestion Summary:")
    print(f"  Total files: {stats['files']}")
    print(f"  Successful: {stats['successful']}")
    print(f"  Partial: {stats['partial']}")
    print(f"  Failed: {stats['failed']}")
    print(f"  Chunks saved: {stats['chunks_saved']}")

    for report in stats["reports"]:
        if report.status == "success":
            print(f"  ✓ {report.file_name:40} | {report.chunks_saved:4} chunks")
        elif report.status == "partial":
            print(f"  ~ {report.file_name:40} | {report.chunks_saved:4}/{report.chunks_total} chunks"
                  f" (failed: {report.failed_chunks})")
        else:
            print(f"  ✗ {report.file_name}: {report.error}")

    print("=" * 60)
