"""
Relational persistence for documents and their embedded chunks.

The store is constructed explicitly and handed to the indexer and the
retriever. Every call runs in its own transaction, so a reader sees whatever
writers have committed at the moment of the read.
"""
import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from sqlalchemy import (
    BigInteger,
    Column,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

from .chunking import Chunk

logger = logging.getLogger(__name__)

Base = declarative_base()


def _now_millis() -> int:
    return int(time.time() * 1000)


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_path = Column(String(1024), nullable=False, unique=True, index=True)
    file_name = Column(String(512), nullable=False)
    modified_time = Column(BigInteger, nullable=False)
    created_at = Column(BigInteger, nullable=False, default=_now_millis)

    chunks = relationship("ChunkRecord", back_populates="document", cascade="all, delete-orphan")


class ChunkRecord(Base):
    __tablename__ = "chunks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    chunk_index = Column(Integer, nullable=False)
    chunk_text = Column(Text, nullable=False)
    start_offset = Column(Integer, nullable=False)
    end_offset = Column(Integer, nullable=False)
    embedding = Column(LargeBinary, nullable=False)
    created_at = Column(BigInteger, nullable=False, default=_now_millis)

    document = relationship("Document", back_populates="chunks")


@dataclass(frozen=True)
class StoredChunk:
    """A persisted chunk joined with its document and raw vector blob"""
    chunk_id: int
    document_id: int
    file_name: str
    file_path: str
    chunk_index: int
    chunk_text: str
    start_offset: int
    end_offset: int
    vector_bytes: bytes


class VectorStore:
    """SQL-backed store of documents, chunks and their vectors."""

    def __init__(self, database_url: str = "sqlite:///./rag_database.db", echo: bool = False):
        """
        Connect to the database and create the schema if needed.

        Args:
            database_url: SQLAlchemy database URL
            echo: Log emitted SQL
        """
        self.database_url = database_url
        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                # one shared connection, otherwise each session sees a fresh database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info("Database schema created/verified at: %s", database_url)

    def save_document(self, path: str, name: str, modified_time: int) -> int:
        """
        Insert a document, replacing any previous one with the same path.

        Returns:
            The new document id
        """
        with self.Session.begin() as session:
            existing_id = session.execute(
                select(Document.id).where(Document.file_path == path)
            ).scalar_one_or_none()
            if existing_id is not None:
                session.execute(delete(ChunkRecord).where(ChunkRecord.document_id == existing_id))
                session.execute(delete(Document).where(Document.id == existing_id))
                logger.info("Deleted existing document and chunks: %s", name)

            document = Document(file_path=path, file_name=name, modified_time=int(modified_time))
            session.add(document)
            session.flush()
            return document.id

    @staticmethod
    def _record(document_id: int, chunk: Chunk, vector_bytes: bytes) -> ChunkRecord:
        return ChunkRecord(
            document_id=document_id,
            chunk_index=chunk.index,
            chunk_text=chunk.text,
            start_offset=chunk.start_offset,
            end_offset=chunk.end_offset,
            embedding=bytes(vector_bytes),
        )

    def save_chunk(self, document_id: int, chunk: Chunk, vector_bytes: bytes) -> int:
        """Persist one chunk with its encoded vector and return its id."""
        with self.Session.begin() as session:
            record = self._record(document_id, chunk, vector_bytes)
            session.add(record)
            session.flush()
            return record.id

    def save_chunks_batch(self, document_id: int, chunks: Iterable[Tuple[Chunk, bytes]]) -> int:
        """Persist several chunks in one transaction and return how many were written."""
        records = [self._record(document_id, chunk, vector) for chunk, vector in chunks]
        with self.Session.begin() as session:
            session.add_all(records)
        return len(records)

    def get_all_chunks_with_vectors(self) -> List[StoredChunk]:
        """
        Load every chunk joined with its document.

        Returns:
            Stored chunks ordered by chunk id (insertion order)
        """
        statement = (
            select(
                ChunkRecord.id,
                Document.id,
                Document.file_name,
                Document.file_path,
                ChunkRecord.chunk_index,
                ChunkRecord.chunk_text,
                ChunkRecord.start_offset,
                ChunkRecord.end_offset,
                ChunkRecord.embedding,
            )
            .join(Document, ChunkRecord.document_id == Document.id)
            .order_by(ChunkRecord.id)
        )
        with self.Session() as session:
            rows = session.execute(statement).all()

        return [
            StoredChunk(
                chunk_id=row[0],
                document_id=row[1],
                file_name=row[2],
                file_path=row[3],
                chunk_index=row[4],
                chunk_text=row[5],
                start_offset=row[6],
                end_offset=row[7],
                vector_bytes=bytes(row[8]),
            )
            for row in rows
        ]

    def document_count(self) -> int:
        with self.Session() as session:
            return session.execute(select(func.count(Document.id))).scalar_one()

    def chunk_count(self) -> int:
        with self.Session() as session:
            return session.execute(select(func.count(ChunkRecord.id))).scalar_one()

    def close(self):
        """Dispose of pooled connections."""
        self.engine.dispose()
