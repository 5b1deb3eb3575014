# ===============================================
# tests/test_embed_job.py
# Offline embedding backfill: idempotence, partial
# failure, CLI entrypoint.
# ===============================================

import numpy as np
import pytest

from tonematch.errors import EmbeddingError
from tonematch.jobs import embed_samples
from tonematch.jobs.embed_samples import backfill_embeddings
from tonematch.store import SQLiteStore

from conftest import HashEmbedder


class _FlakyEmbedder(HashEmbedder):
    """Succeeds for the first `ok_batches` batches, then fails."""

    def __init__(self, ok_batches: int):
        super().__init__()
        self.ok_batches = ok_batches

    def _embed_many(self, texts):
        if self.calls >= self.ok_batches:
            raise EmbeddingError("upstream down")
        return super()._embed_many(texts)


def test_backfill_writes_each_sample_once(store, embedder):
    u = store.add_user("Alice")
    store.add_tone_samples(u, ["one", "two", "three"])
    assert backfill_embeddings(store, embedder, batch_size=2) == 3
    assert backfill_embeddings(store, embedder, batch_size=2) == 0
    assert embedder.calls == 2

    samples = store.embedded_samples(u)
    assert len(samples) == 3
    for s in samples:
        assert s.embedding.dtype == np.float32
        assert np.linalg.norm(s.embedding) == pytest.approx(1.0, abs=1e-5)


def test_backfill_respects_limit(store, embedder):
    u = store.add_user("Alice")
    store.add_tone_samples(u, ["one", "two", "three"])
    assert backfill_embeddings(store, embedder, limit=2) == 2
    assert len(store.samples_without_embeddings()) == 1


def test_failed_batch_keeps_earlier_rows(store):
    u = store.add_user("Alice")
    store.add_tone_samples(u, ["one", "two", "three", "four"])
    with pytest.raises(EmbeddingError):
        backfill_embeddings(store, _FlakyEmbedder(ok_batches=1), batch_size=2)
    assert len(store.embedded_samples(u)) == 2
    assert len(store.samples_without_embeddings()) == 2


def test_invalid_batch_size(store, embedder):
    with pytest.raises(ValueError):
        backfill_embeddings(store, embedder, batch_size=0)


def test_main_cli(tmp_path, monkeypatch, capsys):
    db = (tmp_path / "cli.db").as_posix()
    seed = SQLiteStore(db)
    seed.add_tone_samples(seed.add_user("Alice"), ["hello there", "hi"])

    monkeypatch.setattr(embed_samples, "build_embedder", lambda _settings: HashEmbedder())
    assert embed_samples.main(["--db", db]) == 0
    assert "2 samples written" in capsys.readouterr().out
    assert seed.samples_without_embeddings() == []


def test_main_cli_reports_failure(tmp_path, monkeypatch, capsys):
    db = (tmp_path / "cli.db").as_posix()
    seed = SQLiteStore(db)
    seed.add_tone_samples(seed.add_user("Alice"), ["hello there"])

    monkeypatch.setattr(embed_samples, "build_embedder", lambda _settings: _FlakyEmbedder(ok_batches=0))
    assert embed_samples.main(["--db", db]) == 1
    assert "ERROR" in capsys.readouterr().err
