# src/tokenledger/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from tokenledger.api.routes_public_parts.accounts import router as accounts_router
from tokenledger.api.routes_public_parts.health import router as health_router
from tokenledger.api.routes_public_parts.tokens import router as tokens_router
from tokenledger.api.routes_public_parts.tx import router as tx_router
from tokenledger.ledger.constants import SERVICE_NAME

public_router = APIRouter()

# Service query endpoints keep the node's historical path layout.
public_router.include_router(tokens_router, prefix=f"/api/services/{SERVICE_NAME}/v1", tags=["tokens"])

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(accounts_router, prefix="/v1", tags=["accounts"])
public_router.include_router(tx_router, prefix="/v1", tags=["tx"])
