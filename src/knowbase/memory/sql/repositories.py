"""
Repositories (SQL-only)
=======================
- No embedding calls here; pure CRUD and the nearest-neighbour scan.
- Every call blocks until SQLite returns; locking is left to SQLite.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Iterable, List, Optional

from knowbase.errors import CodecError, LengthMismatchError, PersistenceError
from knowbase.memory.models import Fragment
from knowbase.memory.vec.codec import encode
from knowbase.memory.vec.distance import VectorDistance

_COLUMNS = "id, label, name, content, embedding_model, embedding_vector, created_at, updated_at"


class FragmentsRepo:
    """CRUD helpers for the ``fragments`` table."""

    def __init__(self, conn: sqlite3.Connection, distance: VectorDistance):
        self.conn = conn
        # Must be the instance registered on ``conn`` so errors can be recovered.
        self.distance = distance

    def upsert(
        self,
        label: str,
        name: str,
        content: str,
        model: str,
        vector: Iterable[float],
    ) -> Fragment:
        """
        Insert a fragment, or refresh it in place on a ``(label, name)`` conflict.

        ``id`` and ``created_at`` survive the update.

        :returns: The stored row.
        """
        sql = f"""
            INSERT INTO fragments (label, name, content, embedding_model, embedding_vector)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (label, name) DO UPDATE SET
              content=excluded.content,
              embedding_model=excluded.embedding_model,
              embedding_vector=excluded.embedding_vector,
              updated_at=strftime('%s', 'now')
            RETURNING {_COLUMNS}
        """
        blob = encode(vector)

        def _run():
            with self.conn:
                return self.conn.execute(sql, (label, name, content, model, blob)).fetchone()

        row = self._call(_run, "insert fragment")
        if row is None:
            raise PersistenceError(f"insert fragment returned no row (label={label!r} name={name!r})")
        return Fragment.from_row(row)

    def is_dirty(self, label: str, name: str, content: str) -> bool:
        """Return ``True`` unless this exact ``(label, name, content)`` is stored."""
        sql = """
            SELECT count(*) = 0
            FROM fragments
            WHERE label = ? AND name = ? AND content = ?
        """
        row = self._call(
            lambda: self.conn.execute(sql, (label, name, content)).fetchone(),
            "check fragment",
        )
        return bool(row[0])

    def nearest(self, vector: Iterable[float], label_pattern: str, limit: int) -> List[Fragment]:
        """
        Exact nearest neighbours among rows whose label is ``LIKE label_pattern``.

        Full scan: ``vec_dist`` runs once per matching row. Ties break on ``id``.
        """
        if limit <= 0:
            return []
        sql = f"""
            SELECT {_COLUMNS}
            FROM fragments
            WHERE label LIKE ?
            ORDER BY vec_dist(?, embedding_vector), id
            LIMIT ?
        """
        blob = encode(vector)
        rows = self._call(
            lambda: self.conn.execute(sql, (label_pattern, blob, int(limit))).fetchall(),
            "knn query",
        )
        return [Fragment.from_row(r) for r in rows]

    def get(self, label: str, name: str) -> Optional[Fragment]:
        """Return the fragment stored under ``(label, name)``, if any."""
        sql = f"SELECT {_COLUMNS} FROM fragments WHERE label = ? AND name = ?"
        row = self._call(lambda: self.conn.execute(sql, (label, name)).fetchone(), "get fragment")
        return Fragment.from_row(row) if row else None

    def list_fragments(self) -> List[Fragment]:
        """Return every fragment ordered by id."""
        sql = f"SELECT {_COLUMNS} FROM fragments ORDER BY id"
        rows = self._call(lambda: self.conn.execute(sql).fetchall(), "list fragments")
        return [Fragment.from_row(r) for r in rows]

    def count(self) -> int:
        row = self._call(
            lambda: self.conn.execute("SELECT count(*) FROM fragments").fetchone(),
            "count fragments",
        )
        return int(row[0])

    def _call(self, fn, what: str) -> Any:
        """Run ``fn`` translating sqlite errors into the knowbase taxonomy."""
        self.distance.take_error()
        try:
            return fn()
        except sqlite3.Error as exc:
            cause = self.distance.take_error()
            if isinstance(cause, (CodecError, LengthMismatchError)):
                raise cause from exc
            raise PersistenceError(f"{what}: {exc}") from exc


__all__ = ["FragmentsRepo"]
