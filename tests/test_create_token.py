from __future__ import annotations

import json

import pytest

from tokenledger.ledger.schema import TokenSchema
from tokenledger.runtime.errors import ErrorCode, ExecutionError, TokenAlreadyExists
from tokenledger.runtime.transitions import create_token
from tokenledger.storage.kv import Fork, MemoryKVStore, Snapshot

ALICE = bytes([0xAA] * 32)
BOB = bytes([0xBB] * 32)


def _run(store: MemoryKVStore, symbol: str, actor: bytes) -> None:
    fork = Fork(store)
    create_token(fork, symbol, actor)
    store.apply_batch(fork.into_patch())


def test_create_on_empty_ledger_records_actor_as_owner() -> None:
    store = MemoryKVStore()
    _run(store, "BTC", ALICE)

    token = TokenSchema(Snapshot(store)).token("BTC")
    assert token is not None
    assert token.owner == ALICE
    assert token.symbol == "BTC"


@pytest.mark.parametrize("second_actor", [ALICE, BOB])
def test_duplicate_symbol_is_rejected_and_state_unchanged(second_actor: bytes) -> None:
    store = MemoryKVStore()
    _run(store, "BTC", ALICE)

    fork = Fork(store)
    with pytest.raises(TokenAlreadyExists) as ei:
        create_token(fork, "BTC", second_actor)

    assert not fork.is_dirty()
    assert fork.into_patch() == []
    assert TokenSchema(Snapshot(store)).token("BTC").owner == ALICE
    assert ei.value.code == ErrorCode.TOKEN_ALREADY_EXISTS == 0
    assert str(ei.value) == "Token already exists"


def test_duplicate_within_same_fork_is_rejected() -> None:
    fork = Fork(MemoryKVStore())
    create_token(fork, "ETH", ALICE)
    with pytest.raises(TokenAlreadyExists):
        create_token(fork, "ETH", BOB)
    assert TokenSchema(fork).token("ETH").owner == ALICE


def test_enumeration_contains_exactly_created_tokens() -> None:
    store = MemoryKVStore()
    _run(store, "A", ALICE)
    _run(store, "B", BOB)

    got = {(t.symbol, t.owner) for t in TokenSchema(Snapshot(store)).tokens()}
    assert got == {("A", ALICE), ("B", BOB)}


def test_error_converts_to_execution_error() -> None:
    err = ExecutionError.from_transition_error(TokenAlreadyExists("BTC"))
    assert err.code == 0
    assert err.description == "Token already exists"


def test_create_token_logs_event(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO", logger="tokenledger.tokens")
    create_token(Fork(MemoryKVStore()), "LOG", ALICE)
    events = [json.loads(r.getMessage()) for r in caplog.records if '"event":"token_created"' in r.getMessage()]
    assert events and events[-1]["owner"] == ALICE.hex()
    assert events[-1]["symbol"] == "LOG"
