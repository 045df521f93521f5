from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from tokenledger.api.errors import ApiError
from tokenledger.crypto.identity import token_address
from tokenledger.ledger.types import Token
from tokenledger.runtime.executor import TokenExecutor

Json = Dict[str, Any]


def _executor(request: Request) -> TokenExecutor:
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _token_json(token: Token) -> Json:
    out = token.to_json()
    out["address"] = token_address(token.owner, token.symbol).hex()
    return out
