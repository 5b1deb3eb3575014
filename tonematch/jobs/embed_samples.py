# Offline backfill: embed tone samples that have no embedding yet.
# Runs outside the request path. Each vector is written in a single UPDATE
# guarded by "embedding IS NULL", so readers see either no embedding or a
# complete one. A failed batch raises; rows already written stay written.
#
#   python -m tonematch.jobs.embed_samples --db data/tonematch.db --batch-size 64

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional

from ..errors import EmbeddingError
from ..search.embeddings import build_embedder
from ..settings import configure_logging, settings
from ..store.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


def _heartbeat(done: int, total: int, t0: float, every: int = 1000) -> None:
    if done % every == 0 and done > 0:
        dt = time.time() - t0
        rate = done / max(dt, 1e-6)
        print(f">> Embedded {done}/{total} samples  ({rate:.1f} samples/s)", flush=True)


def backfill_embeddings(store, embedder, batch_size: int = 64, limit: Optional[int] = None) -> int:
    """Embed pending samples batch by batch; returns the number of rows written."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    pending = store.samples_without_embeddings(limit=limit)
    if not pending:
        logger.info("No tone samples waiting for embeddings")
        return 0

    written = 0
    t0 = time.time()
    for start in range(0, len(pending), batch_size):
        batch = pending[start : start + batch_size]
        try:
            vecs = embedder.embed_batch([text for _, text in batch])
        except EmbeddingError:
            logger.error("Embedding batch %d-%d failed; %d rows written so far", start, start + len(batch), written)
            raise
        for (sample_id, _), vec in zip(batch, vecs):
            if store.set_embedding(sample_id, vec):
                written += 1
            _heartbeat(written, len(pending), t0)

    logger.info("Embedded %d/%d samples in %.2fs", written, len(pending), time.time() - t0)
    return written


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Embed tone samples that have no embedding yet")
    ap.add_argument("--db", default=settings.DB_PATH, help="SQLite DB path")
    ap.add_argument("--batch-size", type=int, default=64)
    ap.add_argument("--limit", type=int, default=None, help="Embed at most this many samples")
    ap.add_argument("--verbose", action="store_true", help="Show detailed progress/config")
    args = ap.parse_args(argv)

    configure_logging("DEBUG" if args.verbose else None)

    if args.verbose:
        print("== Embed config ==")
        print(f"db        : {args.db}")
        print(f"batch-size: {args.batch_size}")
        print(f"backend   : {settings.EMBED_BACKEND} ({settings.EMBED_MODEL})")
        sys.stdout.flush()

    store = SQLiteStore(args.db)
    embedder = build_embedder(settings)
    try:
        n = backfill_embeddings(store, embedder, batch_size=args.batch_size, limit=args.limit)
    except EmbeddingError as e:
        print(f">> ERROR: {e}", file=sys.stderr)
        return 1
    print(f">> Embed step complete. {n} samples written.", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
