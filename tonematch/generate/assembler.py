# Context assembly for one draft request.
# User and partner are checked before anything else so a missing record never
# costs an embedding or generation call; the independent reads are then issued
# concurrently and joined.

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from ..errors import NotFoundError
from ..search.rank import DEFAULT_LAMBDA
from .types import GenerationRequest, RelationshipDescriptor

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Builds a GenerationRequest from the stores and the retriever.

    `store` must provide get_user, get_partner, get_recent_turns,
    get_relationship, get_custom_guidelines and style_stats.
    """

    def __init__(
        self,
        store,
        retriever,
        top_k: int = 15,
        over_fetch_factor: int = 10,
        lam: float = DEFAULT_LAMBDA,
        recent_turns: int = 20,
        max_workers: int = 5,
    ):
        self.store = store
        self.retriever = retriever
        self.top_k = top_k
        self.over_fetch_factor = over_fetch_factor
        self.lam = lam
        self.recent_turns = recent_turns
        self.max_workers = max_workers

    def _require(self, user_id: str, partner_id: str):
        user = self.store.get_user(user_id)
        if not user:
            logger.error("User not found: %s", user_id)
            raise NotFoundError(f"User not found: {user_id}")
        partner = self.store.get_partner(partner_id)
        if not partner:
            logger.error("Partner not found: %s", partner_id)
            raise NotFoundError(f"Partner not found: {partner_id}")
        return user, partner

    def assemble(self, user_id: str, partner_id: str, incoming_message: str) -> GenerationRequest:
        if not incoming_message or not incoming_message.strip():
            raise ValueError("incoming message must be non-empty")

        user, partner = self._require(user_id, partner_id)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            f_turns = pool.submit(self.store.get_recent_turns, user_id, partner_id, self.recent_turns)
            f_rel = pool.submit(self.store.get_relationship, user_id, partner_id)
            f_guidelines = pool.submit(self.store.get_custom_guidelines, user_id)
            f_style = pool.submit(self.store.style_stats, user_id)
            f_samples = pool.submit(
                self.retriever.retrieve_diverse,
                user_id,
                incoming_message,
                self.top_k,
                self.lam,
                self.over_fetch_factor,
            )
            turns = f_turns.result()
            relationship: Optional[RelationshipDescriptor] = f_rel.result()
            guidelines: Optional[str] = f_guidelines.result()
            style = f_style.result()
            samples = f_samples.result()

        if relationship is None:
            logger.warning("No relationship for user %s / partner %s, using default register", user_id, partner_id)
            relationship = RelationshipDescriptor()

        logger.info(
            "Context ready: %d recent turns, %d samples, guidelines=%s",
            len(turns),
            len(samples),
            "custom" if guidelines else "default",
        )

        return GenerationRequest(
            user_name=user.get("name") or "User",
            partner_name=partner.get("name") or "Partner",
            incoming_message=incoming_message,
            samples=[c.text for c in samples],
            recent_turns=list(reversed(turns)),
            relationship=relationship,
            custom_guidelines=guidelines or None,
            style_profile=style,
        )
