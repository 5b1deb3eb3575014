# Data models for the search layer.
# ToneSample rows are owned by the store; the rest live for a single request.

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np


@dataclass
class ToneSample:
    """One historical utterance written by the target user."""
    id: int
    user_id: str
    text: str
    embedding: Optional[np.ndarray] = None
    category: Optional[str] = None
    politeness: Optional[str] = None
    vibe: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class IndexHit:
    """Raw neighbour returned by a vector index, nearest first."""
    row_id: int
    text: str
    distance: float


@dataclass
class CandidateResult:
    """A retrieved sample text and its relevance in [0, 1]."""
    text: str
    relevance: float
    sample_id: Optional[int] = None


@dataclass
class SimilarityMetrics:
    """Cosine similarity of a draft against the user's samples, in percent."""
    average: float
    max: float
    min: float
    distribution: Dict[str, int] = field(default_factory=dict)
