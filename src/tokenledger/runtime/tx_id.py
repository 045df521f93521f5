# src/tokenledger/runtime/tx_id.py
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

from tokenledger.runtime.tx_types import TxEnvelope

Json = Dict[str, Any]


def _json_canonical(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_tx_id(*, chain_id: str, tx_type: str, signer: str, nonce: int, payload: Json) -> str:
    """
    Canonical tx_id.

    Contract:
      - Includes chain_id (identical txs on different chains never collide)
      - Excludes sig (signature encoding MUST NOT affect tx_id)
    """
    obj: Json = {
        "chain_id": str(chain_id),
        "tx_type": str(tx_type),
        "signer": str(signer),
        "nonce": int(nonce),
        "payload": payload if isinstance(payload, dict) else {},
    }
    return hashlib.sha256(_json_canonical(obj)).hexdigest()


def compute_tx_id_from_envelope(chain_id: str, env: TxEnvelope) -> str:
    return compute_tx_id(
        chain_id=str(chain_id),
        tx_type=env.tx_type,
        signer=env.signer,
        nonce=int(env.nonce),
        payload=env.payload,
    )
