# ReplyService wires everything together:
#   store -> assembler (retriever + MMR) -> generator (prompt -> client -> parser)
# and is the only entry point the HTTP layer talks to.

from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np

from .errors import NotFoundError
from .generate import ContextAssembler, DualReply, GenerationRequest, ReplyGenerator
from .generate.clients import build_model_client
from .search import FaissToneIndex, Retriever, SimilarityMetrics
from .search.embeddings import build_embedder
from .search.similarity import similarity_metrics
from .store.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class ReplyService:
    def __init__(self, store, embedder, assembler: ContextAssembler, generator: ReplyGenerator, timeout: Optional[float] = None):
        self.store = store
        self.embedder = embedder
        self.assembler = assembler
        self.generator = generator
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "ReplyService":
        store = SQLiteStore(settings.DB_PATH)
        embedder = build_embedder(settings)
        retriever = Retriever(embedder, FaissToneIndex(store, metric=settings.INDEX_METRIC))
        assembler = ContextAssembler(
            store,
            retriever,
            top_k=settings.TOP_K,
            over_fetch_factor=settings.OVER_FETCH_FACTOR,
            lam=settings.MMR_LAMBDA,
            recent_turns=settings.RECENT_TURNS,
        )
        generator = ReplyGenerator(build_model_client(settings), config_path=settings.GENERATE_CONFIG)
        return cls(store, embedder, assembler, generator, timeout=settings.GENERATION_TIMEOUT)

    # -------------------------
    # Replies
    # -------------------------
    def preview_context(self, user_id: str, partner_id: str, message: str) -> GenerationRequest:
        """Assemble the generation request without calling the model."""
        return self.assembler.assemble(user_id, partner_id, message)

    def generate_single_reply(self, user_id: str, partner_id: str, message: str, timeout: Optional[float] = None) -> str:
        logger.info("Single reply requested: user=%s partner=%s", user_id, partner_id)
        request = self.assembler.assemble(user_id, partner_id, message)
        reply = self.generator.generate_single(request, timeout=timeout or self.timeout)
        logger.info("Single reply generated (%d chars)", len(reply))
        return reply

    def generate_dual_reply(self, user_id: str, partner_id: str, message: str, timeout: Optional[float] = None) -> DualReply:
        logger.info("Dual reply requested: user=%s partner=%s", user_id, partner_id)
        request = self.assembler.assemble(user_id, partner_id, message)
        replies = self.generator.generate_dual(request, timeout=timeout or self.timeout)
        logger.info("Dual reply generated: positive=%r negative=%r", replies.positive_reply, replies.negative_reply)
        return replies

    # -------------------------
    # Style similarity
    # -------------------------
    def measure_style_similarity(self, user_id: str, text: str) -> SimilarityMetrics:
        """Cosine similarity of text against every embedded sample of the user."""
        if not self.store.get_user(user_id):
            raise NotFoundError(f"User not found: {user_id}")
        if not text or not text.strip():
            raise ValueError("text must be non-empty")
        samples = self.store.embedded_samples(user_id)
        if not samples:
            return similarity_metrics(np.zeros(1, dtype=np.float32), np.empty((0, 1), dtype=np.float32))
        vec = self.embedder.embed(text)
        matrix = np.vstack([s.embedding for s in samples])
        return similarity_metrics(vec, matrix)

    # -------------------------
    # Style profile (custom guidelines)
    # -------------------------
    def get_style_profile(self, user_id: str) -> Dict[str, Optional[str]]:
        profile = self.store.get_style_profile(user_id)
        if not profile:
            raise NotFoundError(f"Style profile not found: {user_id}")
        return profile

    def update_style_profile(self, user_id: str, custom_guidelines: Optional[str]) -> Dict[str, Optional[str]]:
        if not self.store.get_user(user_id):
            raise NotFoundError(f"User not found: {user_id}")
        logger.info("Updating style profile for %s (guidelines=%s)", user_id, "set" if custom_guidelines else "none")
        return self.store.set_custom_guidelines(user_id, custom_guidelines)

    def delete_style_profile(self, user_id: str) -> None:
        """Reset custom guidelines so the default constraints apply again."""
        if not self.store.clear_custom_guidelines(user_id):
            raise NotFoundError(f"Style profile not found: {user_id}")
        logger.info("Style profile reset for %s", user_id)
