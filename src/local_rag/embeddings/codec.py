"""
Vector Binary Codec

Embeddings are persisted as raw little-endian IEEE-754 float32 bytes:
exactly 4 * D bytes per vector, no header, no compression. Decoding
reproduces bit-identical floats.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from ..core.errors import PersistenceError

VECTOR_DTYPE = np.dtype("<f4")

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(vector: VectorLike) -> np.ndarray:
    """
    Coerce a vector to a contiguous 1-D little-endian float32 array.
    """
    arr = np.ascontiguousarray(vector, dtype=VECTOR_DTYPE)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {arr.shape}.")
    return arr


def encode_vector(vector: VectorLike) -> bytes:
    """
    Serialize a vector to its 4 * D byte representation.
    """
    return as_vector(vector).tobytes()


def decode_vector(blob: bytes) -> np.ndarray:
    """
    Deserialize bytes written by encode_vector().

    Raises
    ------
    PersistenceError
        If the blob length is not a whole number of float32 values.
    """
    if len(blob) % VECTOR_DTYPE.itemsize != 0:
        raise PersistenceError(
            f"Corrupt embedding blob: {len(blob)} bytes is not a multiple of "
            f"{VECTOR_DTYPE.itemsize}."
        )

    # frombuffer returns a read-only view; copy so callers own the array
    return np.frombuffer(blob, dtype=VECTOR_DTYPE).copy()
