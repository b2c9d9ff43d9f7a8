"""
Brute-Force Similarity Search

Exact nearest-neighbour ranking over every stored vector.

Scores are plain dot products. They equal cosine similarity only when both the
query and the stored vectors are unit-normalized, which the embedding producer
guarantees; no clamping or renormalization happens here.

Each query costs O(N * D) for N stored vectors. This is a deliberate ceiling
(comfortable up to tens of thousands of chunks). An approximate index could
replace `rank_candidates` as long as it keeps the same contract: at most `k`
results, non-increasing score, ties in stored order.
"""

from __future__ import annotations

from typing import Iterable, List

import numpy as np

from .codec import VectorLike, as_vector
from .models import SearchCandidate, SearchResult
from ..core.errors import PersistenceError


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Dot product of two vectors of equal dimension.
    """
    va = as_vector(a)
    vb = as_vector(b)
    if va.shape != vb.shape:
        raise ValueError(
            f"Vector dimensions differ: {va.shape[0]} != {vb.shape[0]}"
        )
    return float(np.dot(va, vb))


def rank_candidates(
    query_vector: VectorLike,
    candidates: Iterable[SearchCandidate],
    k: int,
) -> List[SearchResult]:
    """
    Score every candidate against the query and keep the best `k`.

    Parameters
    ----------
    query_vector : VectorLike
        Query embedding of dimension D.

    candidates : Iterable[SearchCandidate]
        Stored records in storage iteration order.

    k : int
        Maximum number of results.

    Returns
    -------
    List[SearchResult]
        Sorted by non-increasing score; equal scores keep candidate order.

    Raises
    ------
    PersistenceError
        If a stored vector's dimension differs from the query's.
    """
    if k <= 0:
        return []

    rows = list(candidates)
    if not rows:
        return []

    query = as_vector(query_vector)
    dim = query.shape[0]

    for row in rows:
        if row.vector.shape[0] != dim:
            raise PersistenceError(
                f"Stored vector for chunk {row.chunk_id} has dimension "
                f"{row.vector.shape[0]}, query has {dim}."
            )

    matrix = np.vstack([row.vector for row in rows])
    scores = matrix @ query

    # Stable sort on negated scores keeps ties in storage order
    order = np.argsort(-scores, kind="stable")[:k]

    return [
        SearchResult(
            chunk_id=rows[i].chunk_id,
            document_id=rows[i].document_id,
            content=rows[i].content,
            score=float(scores[i]),
        )
        for i in order
    ]
