"""
Fixed-size character chunking with overlap.

Windows start at 0, step, 2*step, ... where step = chunk_size - overlap,
and the last (possibly shorter) window always ends at len(text).
"""
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import ChunkingError


@dataclass(frozen=True)
class Chunk:
    """A window of a source document with its character offsets"""
    index: int
    text: str
    start_offset: int
    end_offset: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "text": self.text,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
        }


def _validate(chunk_size: int, overlap: int) -> None:
    for name, value in (("chunk_size", chunk_size), ("overlap", overlap)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ChunkingError(f"{name} must be an integer, got {value!r}")
    if chunk_size <= 0:
        raise ChunkingError(f"chunk_size must be positive, got {chunk_size}")
    if overlap <= 0:
        raise ChunkingError(f"overlap must be positive, got {overlap}")
    if overlap >= chunk_size:
        raise ChunkingError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def chunk_text(text: str, chunk_size: int, overlap: int) -> List[Chunk]:
    """
    Split text into overlapping windows.

    Args:
        text: Full document text
        chunk_size: Window length in characters
        overlap: Characters shared by consecutive windows

    Returns:
        Chunks in increasing index order; empty list for empty text

    Raises:
        ChunkingError: If the parameters are invalid
    """
    _validate(chunk_size, overlap)
    step = chunk_size - overlap
    length = len(text)

    chunks: List[Chunk] = []
    position = 0
    while position < length:
        end = min(position + chunk_size, length)
        chunks.append(Chunk(
            index=len(chunks),
            text=text[position:end],
            start_offset=position,
            end_offset=end,
        ))
        if end == length:
            break
        position += step

    return chunks


class TextChunker:
    """Chunker bound to a fixed window size and overlap."""

    def __init__(self, chunk_size: int = 512, overlap: int = 50):
        _validate(chunk_size, overlap)
        self.chunk_size = chunk_size
        self.overlap = overlap

    @property
    def step(self) -> int:
        return self.chunk_size - self.overlap

    def chunk(self, text: str) -> List[Chunk]:
        return chunk_text(text, self.chunk_size, self.overlap)
