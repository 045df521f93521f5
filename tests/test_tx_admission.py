from __future__ import annotations

from tokenledger.runtime.tx_admission import admit_tx
from tokenledger.runtime.tx_schema import CreateTokenPayload
from tokenledger.testing.sigtools import create_token_tx, deterministic_ed25519_keypair, signed_tx


def test_valid_create_token_is_admitted() -> None:
    tx = create_token_tx(label="alice", symbol="BTC")
    verdict, admitted = admit_tx(tx=tx)
    assert verdict.ok
    assert admitted is not None
    pk, _ = deterministic_ed25519_keypair(label="alice")
    assert admitted.actor == pk
    assert admitted.payload == CreateTokenPayload(symbol="BTC")


def test_tampered_payload_fails_signature() -> None:
    tx = create_token_tx(label="alice", symbol="BTC")
    tx["payload"] = {"symbol": "ETH"}
    verdict, admitted = admit_tx(tx=tx)
    assert verdict.ok is False
    assert verdict.code == "bad_sig"
    assert admitted is None


def test_signature_from_other_key_fails() -> None:
    tx = create_token_tx(label="alice", symbol="BTC")
    bob = create_token_tx(label="bob", symbol="BTC")
    tx["sig"] = bob["sig"]
    verdict, admitted = admit_tx(tx=tx)
    assert not verdict.ok and admitted is None
    assert verdict.code == "bad_sig"


def test_unknown_tx_type_is_unsupported() -> None:
    tx = signed_tx(label="alice", tx_type="TRANSFER", payload={"to": "bob"})
    verdict, _ = admit_tx(tx=tx)
    assert verdict.code == "unsupported_tx"


def test_payload_with_extra_keys_is_rejected() -> None:
    tx = signed_tx(label="alice", tx_type="CREATE_TOKEN", payload={"symbol": "BTC", "supply": 1})
    verdict, _ = admit_tx(tx=tx)
    assert verdict.code == "bad_payload"
    assert verdict.reason == "payload_schema_mismatch"


def test_non_string_symbol_is_rejected() -> None:
    tx = signed_tx(label="alice", tx_type="CREATE_TOKEN", payload={"symbol": 7})
    verdict, _ = admit_tx(tx=tx)
    assert verdict.code == "bad_payload"


def test_envelope_shape_checks() -> None:
    assert admit_tx(tx=["not", "a", "dict"])[0].code == "bad_envelope"

    tx = create_token_tx(label="alice", symbol="BTC")
    tx["signer"] = "abcd"
    verdict, _ = admit_tx(tx=tx)
    assert verdict.code == "bad_envelope"
    assert verdict.reason == "signer_not_ed25519_pubkey"

    tx = create_token_tx(label="alice", symbol="BTC")
    tx["nonce"] = "1"
    assert admit_tx(tx=tx)[0].reason == "nonce_must_be_non_negative_int"

    tx = create_token_tx(label="alice", symbol="BTC")
    tx["payload"] = "BTC"
    assert admit_tx(tx=tx)[0].reason == "payload_must_be_object"


def test_oversized_payload_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("TOKENLEDGER_MAX_TX_PAYLOAD_BYTES", "32")
    tx = create_token_tx(label="alice", symbol="X" * 64)
    verdict, _ = admit_tx(tx=tx)
    assert verdict.reason == "payload_exceeds_size_limit"
