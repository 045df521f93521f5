from __future__ import annotations

"""Host-side admission: everything that must hold before a transition runs.

Checks, in order:
  1. envelope shape (object, string fields, int nonce, object payload)
  2. payload size cap (TOKENLEDGER_MAX_TX_PAYLOAD_BYTES, default 64 KiB)
  3. tx_type has a registered handler
  4. signer decodes to a 32-byte Ed25519 public key
  5. signature over the canonical message verifies against the signer
  6. payload decodes into the handler's strict schema

The transition layer trusts the result: it receives a decoded payload and
the raw public key of an authenticated actor.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel

from tokenledger.crypto.sig import canonical_tx_message, decode_public_key, verify_ed25519_signature
from tokenledger.runtime.dispatch import handler_for
from tokenledger.runtime.tx_schema import decode_payload
from tokenledger.runtime.tx_types import TxEnvelope, TxVerdict

Json = Dict[str, Any]


@dataclass(frozen=True)
class AdmittedTx:
    env: TxEnvelope
    actor: bytes
    payload: BaseModel


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return int(default)
    try:
        return int(str(v).strip())
    except ValueError:
        return int(default)


def _json_size_bytes(obj: Any) -> int:
    return len(json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True).encode("utf-8"))


def _check_envelope(tx: Any) -> Optional[TxVerdict]:
    if not isinstance(tx, dict):
        return TxVerdict.reject("bad_envelope", "envelope_must_be_object", None)
    for key in ("tx_type", "signer", "sig"):
        if not isinstance(tx.get(key), str) or not str(tx.get(key)).strip():
            return TxVerdict.reject("bad_envelope", f"missing_{key}", {"missing": key})
    nonce = tx.get("nonce", 0)
    if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
        return TxVerdict.reject("bad_envelope", "nonce_must_be_non_negative_int", None)
    if not isinstance(tx.get("payload"), dict):
        return TxVerdict.reject("bad_payload", "payload_must_be_object", None)
    return None


def admit_tx(*, tx: Any) -> Tuple[TxVerdict, Optional[AdmittedTx]]:
    bad = _check_envelope(tx)
    if bad is not None:
        return bad, None

    payload: Json = tx["payload"]
    max_payload_bytes = _env_int("TOKENLEDGER_MAX_TX_PAYLOAD_BYTES", 64 * 1024)
    try:
        size = _json_size_bytes(payload)
    except (TypeError, ValueError):
        return TxVerdict.reject("bad_payload", "payload_not_json", None), None
    if size > max_payload_bytes:
        return (
            TxVerdict.reject("bad_payload", "payload_exceeds_size_limit", {"bytes": size, "max_bytes": max_payload_bytes}),
            None,
        )

    env = TxEnvelope.from_json(tx)

    handler = handler_for(env.tx_type)
    if handler is None:
        return TxVerdict.reject("unsupported_tx", "no_handler_for_tx_type", {"tx_type": env.tx_type}), None

    try:
        actor = decode_public_key(env.signer)
    except ValueError as e:
        return TxVerdict.reject("bad_envelope", "signer_not_ed25519_pubkey", {"err": str(e)}), None

    msg = canonical_tx_message(tx_type=env.tx_type, signer=env.signer, nonce=env.nonce, payload=env.payload)
    if not verify_ed25519_signature(message=msg, sig=env.sig, pubkey=env.signer):
        return TxVerdict.reject("bad_sig", "invalid_signature", None), None

    model, reason, details = decode_payload(handler.schema, env.payload)
    if model is None:
        return TxVerdict.reject("bad_payload", reason, details), None

    return TxVerdict.admit(), AdmittedTx(env=env, actor=actor, payload=model)
