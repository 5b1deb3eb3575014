# Diversity re-ranking for retrieved tone samples.
# Greedy Maximal Marginal Relevance over an over-fetched pool, using a cheap
# lexical surrogate for "how alike are these two utterances" so no second
# embedding call is needed per comparison.

from __future__ import annotations
from typing import Callable, List

from .types import CandidateResult

DEFAULT_LAMBDA = 0.9


def text_diversity(a: str, b: str) -> float:
    """Surrogate distance in [0, 1] between two short utterances.

    Combines a bonus for different opening characters, the relative length
    difference and the character-set Jaccard distance.
    """
    first_char_bonus = 0.5 if a[:1] != b[:1] else 0.0

    longest = max(len(a), len(b))
    length_diff = abs(len(a) - len(b)) / longest if longest else 0.0

    chars_a, chars_b = set(a), set(b)
    union = chars_a | chars_b
    jaccard = len(chars_a & chars_b) / len(union) if union else 1.0

    return min(1.0, first_char_bonus + length_diff * 0.3 + (1.0 - jaccard) * 0.2)


def text_similarity(a: str, b: str) -> float:
    return 1.0 - text_diversity(a, b)


def rerank_mmr(
    candidates: List[CandidateResult],
    desired_k: int,
    lam: float = DEFAULT_LAMBDA,
    similarity: Callable[[str, str], float] = text_similarity,
) -> List[CandidateResult]:
    """Select up to desired_k candidates balancing relevance against redundancy.

    score = lam * relevance - (1 - lam) * max similarity to anything already
    selected (0 for the first pick). Ties keep the earliest input position, so
    lam=1.0 reproduces a stable relevance sort. Returned in selection order.
    """
    if not 0.0 <= lam <= 1.0:
        raise ValueError(f"lambda must be in [0, 1], got {lam}")
    if not candidates or desired_k <= 0:
        return []

    selected: List[CandidateResult] = []
    remaining = list(candidates)

    while len(selected) < desired_k and remaining:
        best_idx = 0
        best_score = float("-inf")
        for i, cand in enumerate(remaining):
            max_sim = 0.0
            for sel in selected:
                max_sim = max(max_sim, similarity(cand.text, sel.text))
            score = lam * cand.relevance - (1.0 - lam) * max_sim
            if score > best_score:
                best_score = score
                best_idx = i
        selected.append(remaining.pop(best_idx))

    return selected
