# ===============================================
# Shared fixtures: temp SQLite store, deterministic
# embedder, recording model client, wired service.
# ===============================================

import numpy as np
import pytest

from tonematch.generate import ContextAssembler, ReplyGenerator
from tonematch.jobs.embed_samples import backfill_embeddings
from tonematch.search import FaissToneIndex, Retriever
from tonematch.search.embeddings import BaseEmbedder
from tonematch.service import ReplyService
from tonematch.store import SQLiteStore


class HashEmbedder(BaseEmbedder):
    """Bag-of-characters vectors: texts sharing characters land close together."""

    def __init__(self, dim: int = 32):
        self.dim = dim
        self.calls = 0

    def _embed_many(self, texts):
        self.calls += 1
        out = np.zeros((len(texts), self.dim), dtype=np.float32)
        for row, text in enumerate(texts):
            for ch in text:
                out[row, ord(ch) % self.dim] += 1.0
        return out


class RecordingClient:
    """Model client double that records every call."""

    def __init__(self, reply: str = "YES: sure thing\nNO: can't, sorry", error: Exception = None):
        self.model = "recording"
        self.reply = reply
        self.error = error
        self.calls = []

    def generate(self, messages, params):
        self.calls.append((messages, params))
        if self.error is not None:
            raise self.error
        return self.reply, {"engine": "recording", "model": self.model}

    @property
    def last_system_prompt(self) -> str:
        return self.calls[-1][0][0].content


ALICE_SAMPLES = [
    "free this weekend? lol yes",
    "haha sure let's go",
    "ugh this weekend is packed",
    "omg yes!! finally",
    "nah I'm staying home",
]


@pytest.fixture
def store(tmp_path):
    return SQLiteStore((tmp_path / "tonematch.db").as_posix())


@pytest.fixture
def embedder():
    return HashEmbedder()


@pytest.fixture
def client():
    return RecordingClient(reply="YES: 좋지 이번 주말 완전 비어\nNO: 아 미안 이번 주말은 안돼")


@pytest.fixture
def alice(store, embedder):
    """Alice with 5 embedded tone samples and a close-friend relationship to Bob."""
    user_id = store.add_user("Alice", email="alice@example.com")
    partner_id = store.add_partner("Bob")
    store.upsert_relationship(user_id, partner_id, "close-friend", politeness="casual", vibe="playful")
    store.add_tone_samples(user_id, ALICE_SAMPLES, category="close-friend", politeness="casual", vibe="playful")
    backfill_embeddings(store, embedder)
    store.add_turn(user_id, partner_id, "partner", "hey you around?", created_at="2025-01-01T10:00:00+00:00")
    store.add_turn(user_id, partner_id, "user", "yep what's up", created_at="2025-01-01T10:01:00+00:00")
    return {"user_id": user_id, "partner_id": partner_id}


def build_service(store, embedder, client, config_path=None, **assembler_kwargs):
    retriever = Retriever(embedder, FaissToneIndex(store))
    assembler = ContextAssembler(store, retriever, **assembler_kwargs)
    generator = ReplyGenerator(client, config_path=config_path)
    return ReplyService(store, embedder, assembler, generator, timeout=5.0)


@pytest.fixture
def service(store, embedder, client):
    return build_service(store, embedder, client)
