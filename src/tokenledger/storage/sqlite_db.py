# src/tokenledger/storage/sqlite_db.py
from __future__ import annotations

import json
import os
import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Tuple

from tokenledger.storage.kv import Write


def _now_ms() -> int:
    return int(time.time() * 1000)


def canon_json(obj: Any) -> str:
    """Canonical JSON encoding used for every persisted value.

    Unknown types raise instead of being coerced; persisted bytes must be
    identical on every node.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except ValueError:
        return int(default)


class SqliteDB:
    """Connection factory and write-transaction helper for the node database.

    Connections are never shared across threads; every read or write opens
    its own. SQLite admits a single writer, so write_tx() retries
    BEGIN IMMEDIATE with bounded backoff instead of failing on the first
    "database is locked".
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    @staticmethod
    def _sqlite_synchronous_pragma() -> str:
        """PRAGMA synchronous value: FULL in prod, NORMAL elsewhere.

        Override with TOKENLEDGER_SQLITE_SYNCHRONOUS in {OFF,NORMAL,FULL,EXTRA}.
        """
        mode = (os.environ.get("TOKENLEDGER_MODE") or "prod").strip().lower()
        default = "FULL" if mode == "prod" else "NORMAL"
        raw = (os.environ.get("TOKENLEDGER_SQLITE_SYNCHRONOUS") or default).strip().upper()
        if raw not in {"OFF", "NORMAL", "FULL", "EXTRA"}:
            raw = default
        return raw

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("TOKENLEDGER_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0
        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # BEGIN/COMMIT are issued explicitly
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        row = con.execute("PRAGMA journal_mode=WAL;").fetchone()
        mode = str(row[0]).strip().lower() if row is not None else ""
        allow_non_wal = (os.environ.get("TOKENLEDGER_SQLITE_ALLOW_NON_WAL") or "").strip().lower() in {"1", "true"}
        if mode and mode != "wal" and not allow_non_wal:
            con.close()
            raise RuntimeError(f"sqlite journal_mode is '{mode}', expected 'wal'")

        con.execute(f"PRAGMA synchronous={self._sqlite_synchronous_pragma()};")
        con.execute("PRAGMA foreign_keys=ON;")
        con.execute("PRAGMA temp_store=MEMORY;")

        busy_ms = max(0, _env_int("TOKENLEDGER_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000)))
        con.execute(f"PRAGMA busy_timeout={busy_ms};")
        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                  namespace TEXT NOT NULL,
                  key TEXT NOT NULL,
                  value TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL,
                  PRIMARY KEY (namespace, key)
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
                return
            try:
                have = int(str(row["value"]))
            except ValueError:
                have = 0
            if have != self.SCHEMA_VERSION:
                raise RuntimeError(
                    f"sqlite schema_version mismatch: have={have} want={self.SCHEMA_VERSION}. "
                    "Refuse to start to avoid corrupting data."
                )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return "database is locked" in msg or "database is busy" in msg

    def _backoff(self, attempt: int) -> None:
        base_sleep = max(0.001, float(_env_int("TOKENLEDGER_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("TOKENLEDGER_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)
        sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
        time.sleep(sleep_s * (0.5 + random.random()))

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Open a write transaction; commit on success, roll back on error.

        BEGIN IMMEDIATE and COMMIT are retried with jittered exponential
        backoff until TOKENLEDGER_SQLITE_WRITE_DEADLINE_MS elapses, then the
        lock error propagates.
        """
        deadline_ts = _now_ms() + max(250, _env_int("TOKENLEDGER_SQLITE_WRITE_DEADLINE_MS", 30_000))

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    self._backoff(attempt)
                    attempt += 1

            try:
                yield con
                attempt = 0
                while True:
                    try:
                        con.execute("COMMIT;")
                        break
                    except sqlite3.OperationalError as e:
                        if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                            raise
                        self._backoff(attempt)
                        attempt += 1
            except BaseException:
                if con.in_transaction:
                    con.execute("ROLLBACK;")
                raise


class SqliteKVStore:
    """KeyValueStore persisted in the `kv` table. Iterates in key order."""

    def __init__(self, *, db: SqliteDB) -> None:
        self._db = db
        self._db.init_schema()

    @property
    def db(self) -> SqliteDB:
        return self._db

    def get(self, namespace: str, key: str) -> Optional[str]:
        with self._db.connection() as con:
            row = con.execute(
                "SELECT value FROM kv WHERE namespace=? AND key=? LIMIT 1;",
                (str(namespace), str(key)),
            ).fetchone()
            return None if row is None else str(row["value"])

    def iterate(self, namespace: str) -> Iterator[Tuple[str, str]]:
        with self._db.connection() as con:
            rows = con.execute(
                "SELECT key, value FROM kv WHERE namespace=? ORDER BY key;",
                (str(namespace),),
            ).fetchall()
        # connection is closed before the first item reaches the caller
        for row in rows:
            yield str(row["key"]), str(row["value"])

    def put(self, namespace: str, key: str, value: str) -> None:
        self.apply_batch([(namespace, key, value)])

    def apply_batch(self, writes: Iterable[Write]) -> None:
        rows = [(str(ns), str(k), str(v), _now_ms()) for ns, k, v in writes]
        if not rows:
            return
        with self._db.write_tx() as con:
            con.executemany(
                """
                INSERT INTO kv(namespace, key, value, updated_ts_ms)
                VALUES(?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET
                  value=excluded.value,
                  updated_ts_ms=excluded.updated_ts_ms;
                """,
                rows,
            )
