from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Query, Request

from tokenledger.api.errors import ApiError
from tokenledger.api.routes_public_parts.common import _executor, _token_json
from tokenledger.ledger.schema import TokenSchema

router = APIRouter()

Json = Dict[str, Any]


@router.get("/token")
def get_token(request: Request, symbol: str = Query(..., description="Token symbol")) -> Json:
    """Single token by symbol, read from a snapshot."""
    schema = TokenSchema(_executor(request).snapshot())
    token = schema.token(symbol)
    if token is None:
        raise ApiError.not_found("token_not_found", "Token not found", {"symbol": symbol})
    return _token_json(token)


@router.get("/tokens")
def get_tokens(request: Request) -> List[Json]:
    """All tokens in store order."""
    schema = TokenSchema(_executor(request).snapshot())
    return [_token_json(t) for t in schema.tokens()]
