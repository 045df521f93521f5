from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import pytest

from tokenledger.runtime.executor_boot import ExecutorBootConfig, build_executor
from tokenledger.storage.sqlite_db import SqliteDB, SqliteKVStore
from tokenledger.testing.sigtools import create_token_tx, deterministic_ed25519_keypair


def _pragma(con: sqlite3.Connection, name: str) -> int | str:
    row = con.execute(f"PRAGMA {name};").fetchone()
    if row is None:
        raise AssertionError(f"missing pragma: {name}")
    return row[0]


def test_sqlite_operational_pragmas_are_applied(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOKENLEDGER_MODE", "prod")
    monkeypatch.delenv("TOKENLEDGER_SQLITE_SYNCHRONOUS", raising=False)
    monkeypatch.setenv("TOKENLEDGER_SQLITE_BUSY_TIMEOUT_MS", "1234")

    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    db.init_schema()

    with db.connection() as con:
        assert str(_pragma(con, "journal_mode")).lower() == "wal"
        assert int(_pragma(con, "synchronous")) == 2  # FULL
        assert int(_pragma(con, "busy_timeout")) == 1234


def test_kv_store_roundtrip_and_key_order(tmp_path: Path) -> None:
    store = SqliteKVStore(db=SqliteDB(path=str(tmp_path / "ledger.db")))
    assert store.get("ns", "missing") is None

    store.apply_batch([("ns", "b", "2"), ("ns", "a", "1"), ("other", "a", "x")])
    store.put("ns", "b", "22")

    assert store.get("ns", "b") == "22"
    assert list(store.iterate("ns")) == [("a", "1"), ("b", "22")]
    assert list(store.iterate("other")) == [("a", "x")]


def test_iterate_does_not_hold_a_connection_open(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = SqliteKVStore(db=SqliteDB(path=str(tmp_path / "ledger.db")))
    store.apply_batch([("ns", "a", "1"), ("ns", "b", "2")])

    open_now = {"n": 0}
    real_connection = SqliteDB.connection

    @contextmanager
    def counting_connection(self: SqliteDB) -> Iterator[sqlite3.Connection]:
        with real_connection(self) as con:
            open_now["n"] += 1
            try:
                yield con
            finally:
                open_now["n"] -= 1

    monkeypatch.setattr(SqliteDB, "connection", counting_connection)

    it = store.iterate("ns")
    assert next(it) == ("a", "1")
    assert open_now["n"] == 0

    # A write while the iterator is suspended neither blocks nor leaks into it.
    store.put("ns", "c", "3")
    assert list(it) == [("b", "2")]
    assert open_now["n"] == 0


def test_failed_write_tx_rolls_back(tmp_path: Path) -> None:
    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    store = SqliteKVStore(db=db)

    with pytest.raises(RuntimeError):
        with db.write_tx() as con:
            con.execute("INSERT INTO kv(namespace, key, value, updated_ts_ms) VALUES('ns', 'k', 'v', 0);")
            raise RuntimeError("boom")

    assert store.get("ns", "k") is None


def test_schema_version_mismatch_refuses_to_start(tmp_path: Path) -> None:
    db = SqliteDB(path=str(tmp_path / "ledger.db"))
    db.init_schema()
    with db.write_tx() as con:
        con.execute("UPDATE meta SET value='99' WHERE key='schema_version';")

    with pytest.raises(RuntimeError, match="schema_version mismatch"):
        db.init_schema()


def test_tokens_survive_executor_restart(tmp_path: Path) -> None:
    cfg = ExecutorBootConfig(db_path=str(tmp_path / "node" / "ledger.db"), node_id="n1", chain_id="c1")

    ex = build_executor(cfg)
    assert ex.submit_tx(create_token_tx(label="alice", symbol="BTC"))["status"] == "committed"
    rejected = ex.submit_tx(create_token_tx(label="bob", symbol="BTC"))
    assert rejected["status"] == "rejected"

    ex2 = build_executor(cfg)
    alice, _ = deterministic_ed25519_keypair(label="alice")
    assert ex2.token("BTC").owner == alice
    assert [t.symbol for t in ex2.tokens()] == ["BTC"]
    assert ex2.tx_result(rejected["tx_id"])["code"] == 0
