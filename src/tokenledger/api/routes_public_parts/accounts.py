from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from tokenledger.api.errors import ApiError
from tokenledger.crypto.identity import ACCOUNT_TAG, account_address
from tokenledger.crypto.sig import decode_public_key

router = APIRouter()


@router.get("/accounts/{pubkey}/address")
def account_address_get(pubkey: str) -> Dict[str, Any]:
    try:
        raw = decode_public_key(pubkey)
    except ValueError as e:
        raise ApiError.bad_request("bad_pubkey", "pubkey must be a 32-byte ed25519 key", {"err": str(e)})
    return {"ok": True, "pubkey": raw.hex(), "tag": ACCOUNT_TAG, "address": account_address(raw).hex()}
