from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tokenledger.api.errors import ApiError
from tokenledger.api.routes_public_parts.common import _executor

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx/submit")
async def tx_submit(request: Request) -> Json:
    """Submit a signed tx envelope.

    Admission failures (malformed envelope, bad signature, unknown tx_type,
    bad payload) are 400s. A transition rejected by the ledger, such as a
    duplicate symbol, is a normal 200 with status="rejected" and its code.
    """
    ex = _executor(request)
    try:
        body = await request.json()
    except ValueError:
        raise ApiError.bad_request("bad_request", "Body must be valid JSON", {})
    if not isinstance(body, dict):
        raise ApiError.bad_request("bad_request", "Body must be a tx envelope object", {})

    meta = ex.submit_tx(body)
    if not meta.get("ok"):
        raise ApiError.bad_request(
            str(meta.get("error") or "tx_rejected"),
            str(meta.get("reason") or "tx rejected"),
            {"details": meta.get("details")},
        )
    return meta


@router.get("/tx/status/{tx_id}")
def tx_status(request: Request, tx_id: str) -> Json:
    t = str(tx_id or "").strip()
    if not t:
        raise ApiError.bad_request("bad_request", "missing tx_id", {})

    result = _executor(request).tx_result(t)
    if result is None:
        return {"ok": True, "tx_id": t, "status": "unknown"}
    out: Json = {"ok": True}
    out.update(result)
    return out
