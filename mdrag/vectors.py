"""
Binary codec for embedding vectors.

A vector is stored as D little-endian IEEE-754 float32 values, 4*D bytes.
"""
from typing import Sequence, Union

import numpy as np

from .errors import MalformedVectorError

FLOAT32_LE = np.dtype("<f4")

VectorLike = Union[np.ndarray, Sequence[float]]


def encode_vector(vector: VectorLike) -> bytes:
    """
    Serialize a vector to its blob form.

    Args:
        vector: Sequence of floats or a 1-D numpy array

    Returns:
        Little-endian float32 bytes, length 4 * len(vector)
    """
    array = np.asarray(vector, dtype=FLOAT32_LE)
    if array.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {array.shape}")
    return array.tobytes()


def decode_vector(data: bytes) -> np.ndarray:
    """
    Deserialize a blob produced by encode_vector.

    Args:
        data: Raw blob bytes

    Returns:
        float32 numpy array

    Raises:
        MalformedVectorError: If the byte length is not a multiple of 4
    """
    if len(data) % FLOAT32_LE.itemsize:
        raise MalformedVectorError(
            f"Vector blob of {len(data)} bytes is not a multiple of {FLOAT32_LE.itemsize}"
        )
    # frombuffer returns a read-only view; copy so callers own the array
    return np.frombuffer(bytes(data), dtype=FLOAT32_LE).astype(np.float32)


def vector_dimension(data: bytes) -> int:
    """Number of floats in an encoded vector."""
    if len(data) % FLOAT32_LE.itemsize:
        raise MalformedVectorError(
            f"Vector blob of {len(data)} bytes is not a multiple of {FLOAT32_LE.itemsize}"
        )
    return len(data) // FLOAT32_LE.itemsize
