# ===============================================
# tests/test_retriever.py
# Candidate retrieval over the FAISS tone index.
# ===============================================

from types import SimpleNamespace

import numpy as np
import openai
import pytest

from tonematch.errors import EmbeddingError
from tonematch.search import FaissToneIndex, IndexHit, Retriever
from tonematch.search.embeddings import BaseEmbedder, OpenAIEmbedder, build_embedder
from tonematch.settings import Settings


class _FixedIndex:
    def __init__(self, hits):
        self.hits = hits

    def nearest(self, user_id, query_vector, limit):
        return self.hits[:limit]


class _FailingEmbedder(BaseEmbedder):
    def _embed_many(self, texts):
        raise EmbeddingError("upstream down")


def test_zero_embedded_samples_returns_empty(store, embedder):
    user_id = store.add_user("Carol")
    store.add_tone_samples(user_id, ["not embedded yet"])
    r = Retriever(embedder, FaissToneIndex(store))
    assert r.retrieve(user_id, "hello", over_fetch=10) == []
    assert r.retrieve_diverse(user_id, "hello", top_k=3) == []


def test_results_scoped_to_user_and_ordered(store, embedder, alice):
    other = store.add_user("Mallory")
    store.add_tone_samples(other, ["free this weekend? lol yes"])
    store.set_embedding(store.samples_without_embeddings()[0][0], embedder.embed("free this weekend? lol yes"))

    r = Retriever(embedder, FaissToneIndex(store))
    results = r.retrieve(alice["user_id"], "free this weekend? lol yes", over_fetch=50)

    assert len(results) == 5
    own_ids = {s.id for s in store.embedded_samples(alice["user_id"])}
    assert {c.sample_id for c in results} == own_ids
    scores = [c.relevance for c in results]
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= s <= 1.0 for s in scores)
    assert results[0].text == "free this weekend? lol yes"


def test_unembedded_samples_are_excluded(store, embedder, alice):
    store.add_tone_samples(alice["user_id"], ["fresh sample without vector"])
    r = Retriever(embedder, FaissToneIndex(store))
    texts = [c.text for c in r.retrieve(alice["user_id"], "fresh sample", over_fetch=50)]
    assert "fresh sample without vector" not in texts


def test_over_fetch_limits_pool(store, embedder, alice):
    r = Retriever(embedder, FaissToneIndex(store))
    assert len(r.retrieve(alice["user_id"], "weekend", over_fetch=2)) == 2


def test_retrieve_diverse_keeps_top_k(store, embedder, alice):
    r = Retriever(embedder, FaissToneIndex(store))
    ranked = r.retrieve_diverse(alice["user_id"], "weekend plans?", top_k=3, lam=0.9)
    assert len(ranked) == 3
    assert len({c.sample_id for c in ranked}) == 3


def test_l2_metric(store, embedder, alice):
    r = Retriever(embedder, FaissToneIndex(store, metric="l2"))
    results = r.retrieve(alice["user_id"], "free this weekend? lol yes", over_fetch=5)
    assert results[0].text == "free this weekend? lol yes"
    assert results[0].relevance == pytest.approx(1.0, abs=1e-5)


def test_unknown_metric():
    with pytest.raises(ValueError):
        FaissToneIndex(store=None, metric="dot")


def test_dimension_mismatch(store, alice):
    index = FaissToneIndex(store)
    with pytest.raises(ValueError):
        index.nearest(alice["user_id"], np.ones(7, dtype=np.float32), 3)


def test_relevance_is_one_minus_distance_clamped(embedder):
    hits = [IndexHit(1, "a", 0.1), IndexHit(2, "b", -0.2), IndexHit(3, "c", 1.7)]
    results = Retriever(embedder, _FixedIndex(hits)).retrieve("u", "q", over_fetch=3)
    assert [c.relevance for c in results] == pytest.approx([0.9, 1.0, 0.0])


@pytest.mark.parametrize("query", ["", "   "])
def test_blank_query_rejected(embedder, query):
    with pytest.raises(ValueError):
        Retriever(embedder, _FixedIndex([])).retrieve("u", query, over_fetch=5)


def test_embedding_failure_propagates():
    with pytest.raises(EmbeddingError):
        Retriever(_FailingEmbedder(), _FixedIndex([])).retrieve("u", "hello", over_fetch=5)


class _FakeEmbeddings:
    def __init__(self, error=None):
        self.error = error

    def create(self, **kwargs):
        if self.error is not None:
            raise self.error
        # rows deliberately out of order
        return SimpleNamespace(data=[
            SimpleNamespace(index=1, embedding=[0.0, 2.0]),
            SimpleNamespace(index=0, embedding=[3.0, 0.0]),
        ])


def test_openai_embedder_orders_and_normalizes():
    emb = OpenAIEmbedder(api_key="sk-test")
    emb._client = SimpleNamespace(embeddings=_FakeEmbeddings())
    np.testing.assert_allclose(emb.embed_batch(["a", "b"]), [[1.0, 0.0], [0.0, 1.0]])


def test_openai_embedder_error_becomes_embedding_error():
    cause = openai.OpenAIError("rate limited")
    emb = OpenAIEmbedder(api_key="sk-test")
    emb._client = SimpleNamespace(embeddings=_FakeEmbeddings(error=cause))
    with pytest.raises(EmbeddingError) as exc:
        emb.embed("hello")
    assert exc.value.retryable is True
    assert exc.value.__cause__ is cause


def test_openai_embedder_without_key_builds_and_fails_on_use(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    emb = build_embedder(Settings(EMBED_BACKEND="openai", OPENAI_API_KEY=None))
    assert isinstance(emb, OpenAIEmbedder)
    with pytest.raises(EmbeddingError):
        emb.embed("hello")
