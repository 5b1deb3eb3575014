# How close a drafted reply sits to the user's own samples in embedding space.

from __future__ import annotations
from typing import List, Tuple

import numpy as np

from .types import SimilarityMetrics

# (lower, upper, label); upper bound exclusive except for the top bucket
BUCKETS: List[Tuple[float, float, str]] = [
    (0.9, 1.0, "90-100%"),
    (0.8, 0.9, "80-90%"),
    (0.7, 0.8, "70-80%"),
    (0.6, 0.7, "60-70%"),
    (0.5, 0.6, "50-60%"),
    (0.0, 0.5, "0-50%"),
]


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    q = np.asarray(query, dtype=np.float32).reshape(-1)
    m = np.asarray(matrix, dtype=np.float32)
    denom = np.linalg.norm(m, axis=1) * max(float(np.linalg.norm(q)), 1e-12)
    return (m @ q) / np.maximum(denom, 1e-12)


def similarity_metrics(query: np.ndarray, matrix: np.ndarray) -> SimilarityMetrics:
    if matrix is None or len(matrix) == 0:
        return SimilarityMetrics(average=0.0, max=0.0, min=0.0, distribution={b[2]: 0 for b in BUCKETS})

    sims = cosine_similarities(query, matrix)
    distribution = {}
    for lo, hi, label in BUCKETS:
        if hi >= 1.0:
            mask = sims >= lo
        elif lo <= 0.0:
            mask = sims < hi
        else:
            mask = (sims >= lo) & (sims < hi)
        distribution[label] = int(mask.sum())

    return SimilarityMetrics(
        average=round(float(sims.mean()) * 100, 2),
        max=round(float(sims.max()) * 100, 2),
        min=round(float(sims.min()) * 100, 2),
        distribution=distribution,
    )
