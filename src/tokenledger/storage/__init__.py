# src/tokenledger/storage/__init__.py
"""
Storage layer for the token ledger.

  - kv:        KeyValueStore protocol, in-memory store, Snapshot / Fork views
  - sqlite_db: durable SQLite-backed store used by the node runtime

The ledger schema (tokenledger.ledger.schema) only ever talks to a view; it
never reaches a store directly.
"""

from .kv import Fork, KeyValueStore, MemoryKVStore, Snapshot
from .sqlite_db import SqliteDB, SqliteKVStore

__all__ = ["Fork", "KeyValueStore", "MemoryKVStore", "Snapshot", "SqliteDB", "SqliteKVStore"]
