# src/core/similarity.py - v2
"""Exact cosine similarity and ranking over full-precision vectors.

similarity(a, b) = dot(a, b) / (|a| * |b|), defined as 0.0 when either
norm is zero. Ranking is descending by similarity with ties broken by
row order, which callers keep equal to insertion order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Cosine similarity between two vectors of equal length.

    Raises:
        ValueError: If the vectors differ in length.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(
            f"Vectors must have the same length: {a.shape[0]} != {b.shape[0]}"
        )
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def cosine_similarities(query: Sequence[float], matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of ``query`` against every row of ``matrix``.

    Args:
        query: 1D query vector of length d.
        matrix: 2D array of shape (n, d).

    Returns:
        1D array of n similarities. Rows (or a query) with zero norm score 0.0.

    Raises:
        ValueError: If shapes are incompatible.
    """
    q = np.asarray(query, dtype=np.float64)
    if q.ndim != 1:
        raise ValueError(f"Expected 1D query, got {q.ndim}D")
    if matrix.ndim != 2:
        raise ValueError(f"Expected 2D matrix, got {matrix.ndim}D")
    if matrix.shape[0] == 0:
        return np.empty(0, dtype=np.float64)
    if matrix.shape[1] != q.shape[0]:
        raise ValueError(
            f"Vectors must have the same length: {q.shape[0]} != {matrix.shape[1]}"
        )

    q_norm = np.linalg.norm(q)
    if q_norm == 0.0:
        return np.zeros(matrix.shape[0], dtype=np.float64)

    row_norms = np.linalg.norm(matrix, axis=1)
    dots = matrix @ q
    denom = row_norms * q_norm
    out = np.zeros(matrix.shape[0], dtype=np.float64)
    nonzero = denom != 0.0
    out[nonzero] = dots[nonzero] / denom[nonzero]
    return out


def rank_by_similarity(similarities: np.ndarray, top_k: int) -> list[int]:
    """Indices of the ``top_k`` highest similarities, best first.

    Uses a stable sort so equal scores keep their original row order.
    """
    if top_k <= 0 or similarities.size == 0:
        return []
    order = np.argsort(-similarities, kind="stable")
    return [int(i) for i in order[:top_k]]
