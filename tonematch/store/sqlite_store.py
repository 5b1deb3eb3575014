# SQLite-backed collaborators for the reply core:
#   users / partners            -> existence checks and display names
#   relationships               -> RelationshipDescriptor per (user, partner)
#   messages                    -> recent dialogue turns
#   tone_samples                -> style exemplars + float32 embedding BLOBs
#   style_profiles              -> user-authored custom guidelines
#
# Each call opens its own connection, so one store can be shared by the
# assembler's worker threads. db_path must be a file, not ":memory:".

from __future__ import annotations

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from ..categories import category_defaults
from ..generate.types import DialogueTurn, RelationshipDescriptor, StyleProfile
from ..search.types import ToneSample

logger = logging.getLogger(__name__)

_SCHEMA = """
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS users (
    id          TEXT PRIMARY KEY,
    name        TEXT,
    email       TEXT,
    created_at  TEXT
);

CREATE TABLE IF NOT EXISTS partners (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    created_at  TEXT
);

CREATE TABLE IF NOT EXISTS relationships (
    user_id     TEXT NOT NULL,
    partner_id  TEXT NOT NULL,
    category    TEXT NOT NULL,
    politeness  TEXT,
    vibe        TEXT,
    emoji_level INT DEFAULT 0,
    updated_at  TEXT,
    PRIMARY KEY (user_id, partner_id),
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (partner_id) REFERENCES partners(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS messages (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    partner_id  TEXT NOT NULL,
    role        TEXT NOT NULL,
    text        TEXT NOT NULL,
    created_at  TEXT,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (partner_id) REFERENCES partners(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_messages_pair ON messages(user_id, partner_id, created_at);

CREATE TABLE IF NOT EXISTS tone_samples (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     TEXT NOT NULL,
    text        TEXT NOT NULL,
    category    TEXT,
    politeness  TEXT,
    vibe        TEXT,
    embedding   BLOB,
    created_at  TEXT,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_tone_samples_user ON tone_samples(user_id);

CREATE TABLE IF NOT EXISTS style_profiles (
    user_id           TEXT PRIMARY KEY,
    custom_guidelines TEXT,
    updated_at        TEXT,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_utc(ts: str) -> str:
    """ISO-8601 -> UTC ISO-8601, so stored timestamps sort as strings. Naive means UTC."""
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _to_blob(vec: np.ndarray) -> bytes:
    return np.asarray(vec, dtype=np.float32).reshape(-1).tobytes()


def _from_blob(blob: Optional[bytes]) -> Optional[np.ndarray]:
    if blob is None:
        return None
    return np.frombuffer(blob, dtype=np.float32).copy()


class SQLiteStore:
    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    # -------------------------
    # Connections
    # -------------------------
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # -------------------------
    # Users / partners
    # -------------------------
    def add_user(self, name: str, email: Optional[str] = None, user_id: Optional[str] = None) -> str:
        user_id = user_id or str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO users(id, name, email, created_at) VALUES (?, ?, ?, ?);",
                (user_id, name, email, _now()),
            )
        return user_id

    def get_user(self, user_id: str) -> Optional[Dict[str, str]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name, email FROM users WHERE id = ? LIMIT 1;", (user_id,)
            ).fetchone()
        return dict(row) if row else None

    def delete_user(self, user_id: str) -> bool:
        """Delete a user; samples, turns, relationships and style cascade."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM users WHERE id = ?;", (user_id,))
        return cur.rowcount > 0

    def add_partner(self, name: str, partner_id: Optional[str] = None) -> str:
        partner_id = partner_id or str(uuid.uuid4())
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO partners(id, name, created_at) VALUES (?, ?, ?);",
                (partner_id, name, _now()),
            )
        return partner_id

    def get_partner(self, partner_id: str) -> Optional[Dict[str, str]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, name FROM partners WHERE id = ? LIMIT 1;", (partner_id,)
            ).fetchone()
        return dict(row) if row else None

    # -------------------------
    # Relationships
    # -------------------------
    def upsert_relationship(
        self,
        user_id: str,
        partner_id: str,
        category: str,
        politeness: Optional[str] = None,
        vibe: Optional[str] = None,
        emoji_level: Optional[int] = None,
    ) -> RelationshipDescriptor:
        d_pol, d_vibe, d_emoji = category_defaults(category)
        politeness = politeness or d_pol
        vibe = vibe or d_vibe
        emoji_level = d_emoji if emoji_level is None else emoji_level
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO relationships(user_id, partner_id, category, politeness, vibe, emoji_level, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, partner_id) DO UPDATE SET
                    category = excluded.category,
                    politeness = excluded.politeness,
                    vibe = excluded.vibe,
                    emoji_level = excluded.emoji_level,
                    updated_at = excluded.updated_at;
                """,
                (user_id, partner_id, category, politeness, vibe, emoji_level, _now()),
            )
        return RelationshipDescriptor(category=category, politeness=politeness, vibe=vibe)

    def get_relationship(self, user_id: str, partner_id: str) -> Optional[RelationshipDescriptor]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT category, politeness, vibe FROM relationships WHERE user_id = ? AND partner_id = ? LIMIT 1;",
                (user_id, partner_id),
            ).fetchone()
        if not row:
            return None
        return RelationshipDescriptor(
            category=row["category"],
            politeness=row["politeness"] or "CASUAL",
            vibe=row["vibe"] or "CALM",
        )

    # -------------------------
    # Dialogue
    # -------------------------
    def add_turn(self, user_id: str, partner_id: str, role: str, text: str, created_at: Optional[str] = None) -> int:
        if role not in ("user", "partner"):
            raise ValueError(f"role must be 'user' or 'partner', got {role!r}")
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO messages(user_id, partner_id, role, text, created_at) VALUES (?, ?, ?, ?, ?);",
                (user_id, partner_id, role, text, _to_utc(created_at) if created_at else _now()),
            )
        return int(cur.lastrowid)

    def get_recent_turns(self, user_id: str, partner_id: str, limit: int = 20) -> List[DialogueTurn]:
        """Most recent first; the assembler reverses to chronological order."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT role, text, created_at FROM messages
                WHERE user_id = ? AND partner_id = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?;
                """,
                (user_id, partner_id, limit),
            ).fetchall()
        return [DialogueTurn(role=r["role"], text=r["text"], created_at=r["created_at"]) for r in rows]

    # -------------------------
    # Tone samples
    # -------------------------
    def add_tone_samples(
        self,
        user_id: str,
        texts: Iterable[str],
        category: Optional[str] = None,
        politeness: Optional[str] = None,
        vibe: Optional[str] = None,
    ) -> List[int]:
        ids = []
        now = _now()
        with self._connect() as conn:
            for text in texts:
                cur = conn.execute(
                    """
                    INSERT INTO tone_samples(user_id, text, category, politeness, vibe, created_at)
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    (user_id, text, category, politeness, vibe, now),
                )
                ids.append(int(cur.lastrowid))
        return ids

    def samples_without_embeddings(self, limit: Optional[int] = None) -> List[Tuple[int, str]]:
        sql = "SELECT id, text FROM tone_samples WHERE embedding IS NULL ORDER BY id"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        with self._connect() as conn:
            rows = conn.execute(sql + ";", params).fetchall()
        return [(int(r["id"]), r["text"]) for r in rows]

    def set_embedding(self, sample_id: int, vector: np.ndarray) -> bool:
        """Write a completed vector in one statement; existing embeddings are never replaced."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE tone_samples SET embedding = ? WHERE id = ? AND embedding IS NULL;",
                (_to_blob(vector), sample_id),
            )
        return cur.rowcount > 0

    def embedded_samples(self, user_id: str) -> List[ToneSample]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, text, category, politeness, vibe, embedding, created_at
                FROM tone_samples
                WHERE user_id = ? AND embedding IS NOT NULL
                ORDER BY id;
                """,
                (user_id,),
            ).fetchall()
        return [
            ToneSample(
                id=int(r["id"]),
                user_id=r["user_id"],
                text=r["text"],
                embedding=_from_blob(r["embedding"]),
                category=r["category"],
                politeness=r["politeness"],
                vibe=r["vibe"],
                created_at=r["created_at"],
            )
            for r in rows
        ]

    def style_stats(self, user_id: str) -> StyleProfile:
        """Most frequent politeness / vibe over all of a user's samples."""
        with self._connect() as conn:
            pol = conn.execute(
                """
                SELECT politeness, COUNT(*) AS n FROM tone_samples
                WHERE user_id = ? AND politeness IS NOT NULL
                GROUP BY politeness ORDER BY n DESC, politeness LIMIT 1;
                """,
                (user_id,),
            ).fetchone()
            vibe = conn.execute(
                """
                SELECT vibe, COUNT(*) AS n FROM tone_samples
                WHERE user_id = ? AND vibe IS NOT NULL
                GROUP BY vibe ORDER BY n DESC, vibe LIMIT 1;
                """,
                (user_id,),
            ).fetchone()
            total = conn.execute(
                "SELECT COUNT(*) FROM tone_samples WHERE user_id = ?;", (user_id,)
            ).fetchone()[0]
        return StyleProfile(
            politeness_level=pol["politeness"] if pol else None,
            vibe_type=vibe["vibe"] if vibe else None,
            sample_count=int(total),
        )

    # -------------------------
    # Style profiles
    # -------------------------
    def get_style_profile(self, user_id: str) -> Optional[Dict[str, Optional[str]]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT user_id, custom_guidelines, updated_at FROM style_profiles WHERE user_id = ? LIMIT 1;",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def get_custom_guidelines(self, user_id: str) -> Optional[str]:
        profile = self.get_style_profile(user_id)
        if not profile:
            return None
        return profile["custom_guidelines"] or None

    def set_custom_guidelines(self, user_id: str, guidelines: Optional[str]) -> Dict[str, Optional[str]]:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO style_profiles(user_id, custom_guidelines, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    custom_guidelines = excluded.custom_guidelines,
                    updated_at = excluded.updated_at;
                """,
                (user_id, guidelines or None, _now()),
            )
        return self.get_style_profile(user_id)

    def clear_custom_guidelines(self, user_id: str) -> bool:
        """Reset guidelines to NULL (back to default constraints)."""
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE style_profiles SET custom_guidelines = NULL, updated_at = ? WHERE user_id = ?;",
                (_now(), user_id),
            )
        return cur.rowcount > 0
