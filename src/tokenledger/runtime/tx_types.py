from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TxVerdict:
    ok: bool
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    @staticmethod
    def admit() -> "TxVerdict":
        return TxVerdict(True, "ok", "admitted", None)

    @staticmethod
    def reject(code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> "TxVerdict":
        return TxVerdict(False, code, reason, details)


@dataclass(frozen=True)
class TxEnvelope:
    """Signed transaction as submitted by a client.

    signer is the hex-encoded 32-byte Ed25519 public key of the author.
    """

    tx_type: str
    signer: str
    nonce: int
    payload: Dict[str, Any]
    sig: str = ""

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            raise ValueError("tx envelope must be a JSON object")
        payload = j.get("payload", {})
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "") or ""),
            signer=str(j.get("signer", "") or ""),
            nonce=int(j.get("nonce", 0) or 0),
            payload=payload if isinstance(payload, dict) else {},
            sig=str(j.get("sig", "") or ""),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "tx_type": self.tx_type,
            "signer": self.signer,
            "nonce": self.nonce,
            "payload": self.payload,
            "sig": self.sig,
        }
