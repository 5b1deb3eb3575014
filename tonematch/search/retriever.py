# Candidate retrieval for tone samples:
#  - embed the incoming message through the embedding gateway
#  - ask the vector index for the nearest embedded samples of that user
#  - optionally over-fetch and diversify with MMR (rank.py)

from __future__ import annotations

import logging
from typing import List

from .rank import DEFAULT_LAMBDA, rerank_mmr
from .types import CandidateResult

logger = logging.getLogger(__name__)


def _relevance(distance: float) -> float:
    return max(0.0, min(1.0, 1.0 - distance))


class Retriever:
    def __init__(self, embedder, index):
        self.embedder = embedder
        self.index = index

    # -------------------------
    # Public API
    # -------------------------
    def retrieve(self, user_id: str, query: str, over_fetch: int) -> List[CandidateResult]:
        """Nearest samples for query, most relevant first.

        Returns [] when the user has no embedded samples.
        """
        if not query or not query.strip():
            raise ValueError("query must be non-empty")
        if over_fetch < 1:
            raise ValueError(f"over_fetch must be >= 1, got {over_fetch}")

        qvec = self.embedder.embed(query)
        hits = self.index.nearest(user_id, qvec, over_fetch)

        results = [
            CandidateResult(text=h.text, relevance=_relevance(h.distance), sample_id=h.row_id)
            for h in hits
        ]
        logger.info("Retrieved %d candidate samples for user %s", len(results), user_id)
        return results

    def retrieve_diverse(
        self,
        user_id: str,
        query: str,
        top_k: int = 15,
        lam: float = DEFAULT_LAMBDA,
        over_fetch_factor: int = 10,
    ) -> List[CandidateResult]:
        """Over-fetch top_k * over_fetch_factor candidates and keep top_k via MMR."""
        pool = self.retrieve(user_id, query, over_fetch=max(top_k * over_fetch_factor, top_k))
        if not pool:
            return []
        ranked = rerank_mmr(pool, desired_k=top_k, lam=lam)
        logger.debug("MMR kept %d/%d samples (lambda=%.2f)", len(ranked), len(pool), lam)
        return ranked
