from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tokenledger.ledger.constants import SERVICE_ID, SERVICE_NAME
from tokenledger.runtime.dispatch import supported_tx_types

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    ex = getattr(request.app.state, "executor", None)
    return {
        "ok": True,
        "service": SERVICE_NAME,
        "service_id": SERVICE_ID,
        "executor": ex is not None,
        "chain_id": getattr(ex, "chain_id", None),
        "tx_types": supported_tx_types(),
    }
