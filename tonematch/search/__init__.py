# Makes the folder importable as a package.
# Exports the retrieval pipeline pieces for convenience.

from .index import FaissToneIndex
from .rank import rerank_mmr, text_diversity, text_similarity
from .retriever import Retriever
from .types import CandidateResult, IndexHit, SimilarityMetrics, ToneSample

__all__ = [
    "Retriever",
    "FaissToneIndex",
    "rerank_mmr",
    "text_diversity",
    "text_similarity",
    "CandidateResult",
    "IndexHit",
    "SimilarityMetrics",
    "ToneSample",
]
