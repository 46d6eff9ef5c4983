"""Tests for the vector codec."""
import struct

import numpy as np
import pytest

from mdrag.errors import MalformedVectorError
from mdrag.vectors import decode_vector, encode_vector, vector_dimension


class TestEncodeVector:

    def test_little_endian_float32(self):
        """Each float is four little-endian bytes."""
        data = encode_vector([1.0, -2.5])

        assert data == struct.pack("<2f", 1.0, -2.5)

    def test_length(self, sample_embedding):
        assert len(encode_vector(sample_embedding)) == 4 * 768

    def test_numpy_input(self):
        vector = np.array([0.25, 0.5, 0.75], dtype=np.float64)

        assert encode_vector(vector) == struct.pack("<3f", 0.25, 0.5, 0.75)

    def test_rejects_matrix(self):
        with pytest.raises(ValueError):
            encode_vector([[1.0, 2.0], [3.0, 4.0]])


class TestDecodeVector:

    def test_round_trip(self):
        vector = np.array([0.1, -3.75, 1e-6, 123456.0], dtype=np.float32)

        decoded = decode_vector(encode_vector(vector))

        assert decoded.dtype == np.float32
        np.testing.assert_array_equal(decoded, vector)

    def test_empty(self):
        assert decode_vector(b"").size == 0

    def test_result_is_writable(self):
        decoded = decode_vector(encode_vector([1.0, 2.0]))
        decoded[0] = 5.0

        assert decoded[0] == 5.0

    @pytest.mark.parametrize("length", [1, 2, 3, 5, 7])
    def test_malformed_length_raises(self, length):
        """Byte lengths that are not a multiple of 4 are rejected."""
        with pytest.raises(MalformedVectorError):
            decode_vector(b"\x00" * length)

    def test_vector_dimension(self):
        assert vector_dimension(encode_vector([0.0] * 12)) == 12

        with pytest.raises(MalformedVectorError):
            vector_dimension(b"\x00" * 6)
