# Vector index over stored tone samples.
# nearest() is scoped to one user and to rows that already carry an embedding,
# and returns hits ordered by ascending distance.

from __future__ import annotations

import logging
from typing import List

import faiss
import numpy as np

from .types import IndexHit

logger = logging.getLogger(__name__)

METRICS = ("cosine", "l2")


class FaissToneIndex:
    """Exact k-NN over a user's embedded samples, rebuilt per query.

    metric="cosine": IndexFlatIP on L2-normalized vectors, distance = 1 - cos.
    metric="l2":     IndexFlatL2, distance = euclidean distance.
    """

    def __init__(self, store, metric: str = "cosine"):
        if metric not in METRICS:
            raise ValueError(f"metric must be one of {METRICS}, got {metric!r}")
        self.store = store
        self.metric = metric

    def _build(self, vecs: np.ndarray) -> faiss.Index:
        d = vecs.shape[1]
        if self.metric == "cosine":
            index = faiss.IndexFlatIP(d)
            faiss.normalize_L2(vecs)
        else:
            index = faiss.IndexFlatL2(d)
        index.add(vecs)
        return index

    def nearest(self, user_id: str, query_vector: np.ndarray, limit: int) -> List[IndexHit]:
        samples = self.store.embedded_samples(user_id)
        if not samples or limit <= 0:
            return []

        vecs = np.vstack([s.embedding for s in samples]).astype(np.float32)
        q = np.asarray(query_vector, dtype=np.float32).reshape(1, -1).copy()
        if q.shape[1] != vecs.shape[1]:
            raise ValueError(f"Query dim {q.shape[1]} != index dim {vecs.shape[1]}")

        index = self._build(vecs)
        if self.metric == "cosine":
            faiss.normalize_L2(q)

        k = min(limit, len(samples))
        D, I = index.search(q, k)

        hits: List[IndexHit] = []
        for pos in range(k):
            row_idx = int(I[0][pos])
            if row_idx < 0:
                continue
            raw = float(D[0][pos])
            if self.metric == "cosine":
                distance = 1.0 - raw
            else:
                distance = float(np.sqrt(max(raw, 0.0)))  # IndexFlatL2 returns squared distances
            sample = samples[row_idx]
            hits.append(IndexHit(row_id=sample.id, text=sample.text, distance=distance))
        logger.debug("nearest(user=%s) -> %d/%d hits", user_id, len(hits), len(samples))
        return hits
