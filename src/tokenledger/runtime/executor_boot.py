# src/tokenledger/runtime/executor_boot.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from tokenledger.runtime.executor import TokenExecutor
from tokenledger.storage.sqlite_db import SqliteDB, SqliteKVStore


@dataclass(frozen=True)
class ExecutorBootConfig:
    db_path: str
    node_id: str
    chain_id: str


def boot_config_from_env() -> ExecutorBootConfig:
    return ExecutorBootConfig(
        db_path=os.environ.get("TOKENLEDGER_DB_PATH", "./data/tokenledger.db"),
        node_id=os.environ.get("TOKENLEDGER_NODE_ID", "local-node"),
        chain_id=os.environ.get("TOKENLEDGER_CHAIN_ID", "tokenledger-dev"),
    )


def build_executor(cfg: Optional[ExecutorBootConfig] = None) -> TokenExecutor:
    """Build a SQLite-backed TokenExecutor from an explicit config or the environment."""
    c = cfg or boot_config_from_env()
    store = SqliteKVStore(db=SqliteDB(path=c.db_path))
    return TokenExecutor(store=store, chain_id=c.chain_id, node_id=c.node_id)
