from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "tokenledger" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture
def mem_executor():
    from tokenledger.runtime.executor import TokenExecutor
    from tokenledger.storage.kv import MemoryKVStore

    return TokenExecutor(store=MemoryKVStore(), chain_id="tokenledger-test")
