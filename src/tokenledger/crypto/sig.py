# src/tokenledger/crypto/sig.py
from __future__ import annotations

import base64
import json
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

Json = Dict[str, Any]

PUBLIC_KEY_LEN = 32
SEED_LEN = 32


def decode_bytes(s: str) -> bytes:
    """Decode a hex or base64/base64url string."""
    s = s.strip()
    if not s:
        raise ValueError("empty string")
    try:
        return bytes.fromhex(s)
    except ValueError:
        pass
    try:
        padding = "=" * (-len(s) % 4)
        s2 = (s + padding).replace("-", "+").replace("_", "/")
        return base64.b64decode(s2, validate=True)
    except ValueError as e:
        raise ValueError("not hex or base64") from e


def decode_public_key(pubkey: str) -> bytes:
    """Decode an encoded Ed25519 public key into its 32 raw bytes."""
    raw = decode_bytes(pubkey)
    if len(raw) != PUBLIC_KEY_LEN:
        raise ValueError(f"ed25519 pubkey must be {PUBLIC_KEY_LEN} bytes, got {len(raw)}")
    return raw


def keypair_from_seed(seed: bytes) -> tuple[bytes, Ed25519PrivateKey]:
    """Return (raw public key, private key) for a 32-byte seed."""
    if len(seed) != SEED_LEN:
        raise ValueError(f"ed25519 seed must be {SEED_LEN} bytes")
    sk = Ed25519PrivateKey.from_private_bytes(bytes(seed))
    pk = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return pk, sk


def canonical_tx_message(*, tx_type: str, signer: str, nonce: int, payload: Json) -> bytes:
    obj: Json = {
        "tx_type": str(tx_type),
        "signer": str(signer),
        "nonce": int(nonce),
        "payload": payload if isinstance(payload, dict) else {},
    }
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def verify_ed25519_signature(*, message: bytes, sig: str, pubkey: str) -> bool:
    try:
        sig_b = decode_bytes(sig)
        pk_b = decode_public_key(pubkey)
        key = Ed25519PublicKey.from_public_bytes(pk_b)
        key.verify(sig_b, message)
        return True
    except (InvalidSignature, ValueError):
        return False


def sign_ed25519(*, message: bytes, privkey: str, encoding: str = "hex") -> str:
    """Sign a message with an Ed25519 private key.

    privkey: hex or base64/base64url string of a 32-byte seed or 64-byte
    expanded key (seed first).
    encoding: "hex" (default) or "b64".
    """
    pk_b = decode_bytes(privkey)
    if len(pk_b) == 64:
        pk_b = pk_b[:SEED_LEN]
    if len(pk_b) != SEED_LEN:
        raise ValueError("ed25519 privkey must be 32-byte seed (or 64-byte expanded key)")

    _, key = keypair_from_seed(pk_b)
    sig_b = key.sign(message)
    if encoding == "hex":
        return sig_b.hex()
    if encoding in {"b64", "base64"}:
        return base64.b64encode(sig_b).decode("ascii")
    raise ValueError("unsupported encoding")


def sign_tx_envelope_dict(*, tx: Json, privkey: str, encoding: str = "hex") -> Json:
    """Return a copy of tx with its 'sig' field populated.

    Expected shape (extra keys allowed):
      {"tx_type": str, "signer": str, "nonce": int, "payload": dict}
    """
    tx_type = str(tx.get("tx_type") or "")
    signer = str(tx.get("signer") or "")
    nonce = int(tx.get("nonce") or 0)
    payload = tx.get("payload") if isinstance(tx.get("payload"), dict) else {}

    msg = canonical_tx_message(tx_type=tx_type, signer=signer, nonce=nonce, payload=payload)
    out = dict(tx)
    out["tx_type"] = tx_type
    out["signer"] = signer
    out["nonce"] = nonce
    out["payload"] = payload
    out["sig"] = sign_ed25519(message=msg, privkey=privkey, encoding=encoding)
    return out
