# ===============================================
# tests/test_assembler.py
# Context assembly: fail-fast lookups, ordering,
# relationship defaults, guidelines passthrough.
# ===============================================

import pytest

from tonematch.errors import EmbeddingError, NotFoundError
from tonematch.generate import ContextAssembler, RelationshipDescriptor
from tonematch.search import CandidateResult, FaissToneIndex, Retriever


class SpyRetriever:
    def __init__(self, results=None, error=None):
        self.results = results or []
        self.error = error
        self.calls = []

    def retrieve_diverse(self, user_id, query, top_k, lam, over_fetch_factor):
        self.calls.append((user_id, query, top_k, lam, over_fetch_factor))
        if self.error:
            raise self.error
        return self.results


def test_unknown_user_fails_before_retrieval(store):
    spy = SpyRetriever()
    p = store.add_partner("Bob")
    with pytest.raises(NotFoundError, match="User not found"):
        ContextAssembler(store, spy).assemble("missing-user", p, "hi")
    assert spy.calls == []


def test_unknown_partner_fails_before_retrieval(store):
    spy = SpyRetriever()
    u = store.add_user("Alice")
    with pytest.raises(NotFoundError, match="Partner not found"):
        ContextAssembler(store, spy).assemble(u, "missing-partner", "hi")
    assert spy.calls == []


def test_blank_message_rejected(store):
    with pytest.raises(ValueError):
        ContextAssembler(store, SpyRetriever()).assemble("u", "p", "  ")


def test_assembles_full_request(store, embedder, alice):
    retriever = Retriever(embedder, FaissToneIndex(store))
    store.set_custom_guidelines(alice["user_id"], "- always lowercase")
    req = ContextAssembler(store, retriever, top_k=3).assemble(alice["user_id"], alice["partner_id"], "free this weekend?")

    assert req.user_name == "Alice"
    assert req.partner_name == "Bob"
    assert req.incoming_message == "free this weekend?"
    assert len(req.samples) == 3
    assert [t.text for t in req.recent_turns] == ["hey you around?", "yep what's up"]
    assert req.relationship == RelationshipDescriptor("close-friend", "casual", "playful")
    assert req.custom_guidelines == "- always lowercase"
    assert req.style_profile.sample_count == 5


def test_retrieval_parameters_passed_through(store):
    u = store.add_user("Alice")
    p = store.add_partner("Bob")
    spy = SpyRetriever(results=[CandidateResult("ok", 0.9)])
    req = ContextAssembler(store, spy, top_k=15, over_fetch_factor=10, lam=0.9).assemble(u, p, "hello?")
    assert spy.calls == [(u, "hello?", 15, 0.9, 10)]
    assert req.samples == ["ok"]


def test_defaults_without_relationship_or_samples(store):
    u = store.add_user("Alice")
    p = store.add_partner("Stranger")
    req = ContextAssembler(store, SpyRetriever()).assemble(u, p, "hello?")
    assert req.relationship == RelationshipDescriptor("ACQUAINTANCE_CASUAL", "POLITE", "CALM")
    assert req.samples == []
    assert req.recent_turns == []
    assert req.custom_guidelines is None


def test_upstream_failure_propagates(store):
    u = store.add_user("Alice")
    p = store.add_partner("Bob")
    with pytest.raises(EmbeddingError):
        ContextAssembler(store, SpyRetriever(error=EmbeddingError("boom"))).assemble(u, p, "hello?")
