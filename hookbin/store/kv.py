"""Embedded transactional key-value store backed by SQLite.

Keys and values are byte strings grouped into named buckets. ``view()`` and
``update()`` run a block inside a single transaction: ``update()`` commits when
the block returns and rolls back when it raises, so a failed write leaves no
partial effect.

Every transaction opens its own connection. Write transactions start with
``BEGIN IMMEDIATE`` which takes the database write lock up front, so two
concurrent writers are serialized by SQLite rather than by in-process locks.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from hookbin.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_BUSY_TIMEOUT = 5.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS buckets (
    name TEXT PRIMARY KEY
);
CREATE TABLE IF NOT EXISTS entries (
    bucket TEXT NOT NULL,
    key BLOB NOT NULL,
    value BLOB NOT NULL,
    PRIMARY KEY (bucket, key)
) WITHOUT ROWID;
"""


class Bucket:
    """A named collection of key/value pairs inside one transaction."""

    def __init__(self, conn: sqlite3.Connection, name: str, *, writable: bool) -> None:
        self._conn = conn
        self._name = name
        self._writable = writable

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: bytes) -> bytes | None:
        """Return the value stored under *key*, or None if absent."""
        row = self._conn.execute(
            "SELECT value FROM entries WHERE bucket = ? AND key = ?",
            (self._name, key),
        ).fetchone()
        return None if row is None else bytes(row[0])

    def put(self, key: bytes, value: bytes) -> None:
        self._require_writable()
        self._conn.execute(
            "INSERT OR REPLACE INTO entries (bucket, key, value) VALUES (?, ?, ?)",
            (self._name, key, value),
        )

    def delete(self, key: bytes) -> None:
        """Remove *key*. Deleting a missing key is a no-op."""
        self._require_writable()
        self._conn.execute(
            "DELETE FROM entries WHERE bucket = ? AND key = ?",
            (self._name, key),
        )

    def keys(self) -> list[bytes]:
        """Return all keys in bytewise lexicographic order."""
        rows = self._conn.execute(
            "SELECT key FROM entries WHERE bucket = ? ORDER BY key",
            (self._name,),
        ).fetchall()
        return [bytes(row[0]) for row in rows]

    def _require_writable(self) -> None:
        if not self._writable:
            msg = "transaction is read-only"
            raise StoreUnavailableError(msg)


class Transaction:
    """Handle passed to ``view()``/``update()`` blocks."""

    def __init__(self, conn: sqlite3.Connection, *, writable: bool) -> None:
        self._conn = conn
        self.writable = writable

    def bucket(self, name: str) -> Bucket:
        """Return the bucket *name*. Raises StoreUnavailableError if it was never created."""
        row = self._conn.execute("SELECT 1 FROM buckets WHERE name = ?", (name,)).fetchone()
        if row is None:
            msg = f"bucket '{name}' does not exist"
            raise StoreUnavailableError(msg)
        return Bucket(self._conn, name, writable=self.writable)

    def create_bucket(self, name: str) -> Bucket:
        """Create bucket *name* if missing and return it."""
        if not self.writable:
            msg = "transaction is read-only"
            raise StoreUnavailableError(msg)
        self._conn.execute("INSERT OR IGNORE INTO buckets (name) VALUES (?)", (name,))
        return Bucket(self._conn, name, writable=True)


class KeyValueStore:
    """SQLite file holding byte-string buckets with atomic transactions."""

    def __init__(self, path: Path, *, timeout: float = DEFAULT_BUSY_TIMEOUT) -> None:
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        """Create the database file and schema if needed."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
        except (OSError, sqlite3.Error) as exc:
            msg = f"cannot open store {self._path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            msg = f"cannot initialize store {self._path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        finally:
            conn.close()
        logger.info("Key-value store opened: %s", self._path)

    def close(self) -> None:
        """Nothing is held open between transactions."""
        logger.debug("Key-value store closed: %s", self._path)

    @contextmanager
    def view(self) -> Iterator[Transaction]:
        """Run a read-only transaction."""
        with self._transaction(writable=False) as tx:
            yield tx

    @contextmanager
    def update(self) -> Iterator[Transaction]:
        """Run a read-write transaction; commit on success, roll back on error."""
        with self._transaction(writable=True) as tx:
            yield tx

    # -- Internals --

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, timeout=self._timeout, isolation_level=None)
        conn.execute("PRAGMA synchronous=FULL")
        return conn

    @contextmanager
    def _transaction(self, *, writable: bool) -> Iterator[Transaction]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            msg = f"cannot open store {self._path}: {exc}"
            raise StoreUnavailableError(msg) from exc
        try:
            try:
                conn.execute("BEGIN IMMEDIATE" if writable else "BEGIN")
            except sqlite3.Error as exc:
                msg = f"cannot begin transaction: {exc}"
                raise StoreUnavailableError(msg) from exc

            try:
                yield Transaction(conn, writable=writable)
            except sqlite3.Error as exc:
                conn.rollback()
                msg = f"transaction failed: {exc}"
                raise StoreUnavailableError(msg) from exc
            except BaseException:
                conn.rollback()
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                conn.rollback()
                msg = f"commit failed: {exc}"
                raise StoreUnavailableError(msg) from exc
        finally:
            conn.close()
