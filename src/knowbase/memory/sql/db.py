"""
SQLite bootstrap and connection helpers
=======================================

- Single file datastore; WAL + pragmatic PRAGMAs for concurrent readers.
- Every connection gets ``vec_dist`` registered before it is handed out.
"""

from __future__ import annotations

import pathlib
import sqlite3
from typing import Union

from knowbase.errors import PersistenceError
from knowbase.memory.vec.distance import VectorDistance

PathLike = Union[str, pathlib.Path]


def connect(path: PathLike, distance: VectorDistance) -> sqlite3.Connection:
    """Open ``path`` (or ``":memory:"``) and register the distance function."""
    try:
        # Autocommit; writes use explicit `with conn:` blocks.
        conn = sqlite3.connect(
            str(path),
            isolation_level=None,
            check_same_thread=False,
        )

        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA temp_store=MEMORY;")
        conn.execute("PRAGMA cache_size=-65536;")    # ~64 MiB page cache
        # Reduce SQLITE_BUSY errors under contention
        conn.execute("PRAGMA busy_timeout=3000;")    # 3s
    except sqlite3.Error as exc:
        raise PersistenceError(f"failed to open database file {path}: {exc}") from exc

    conn.row_factory = sqlite3.Row
    distance.register(conn)
    return conn


def migrate(conn: sqlite3.Connection) -> None:
    """Execute schema.sql (idempotent)."""
    schema_file = pathlib.Path(__file__).with_name("schema.sql")
    sql = schema_file.read_text(encoding="utf-8")
    try:
        with conn:
            conn.executescript(sql)
    except sqlite3.Error as exc:
        raise PersistenceError(f"failed to create schema: {exc}") from exc


def open_store(path: PathLike, distance: VectorDistance) -> sqlite3.Connection:
    """``connect`` + ``migrate``."""
    conn = connect(path, distance)
    migrate(conn)
    return conn
