# src/tokenledger/runtime/dispatch.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel

from tokenledger.runtime.transitions import apply_create_token
from tokenledger.runtime.tx_schema import CreateTokenPayload, Schema
from tokenledger.storage.kv import Fork

TransitionFn = Callable[[Fork, Any, bytes], None]

CREATE_TOKEN = "CREATE_TOKEN"


@dataclass(frozen=True)
class TxHandler:
    tx_type: str
    schema: Schema
    apply: TransitionFn


_HANDLERS: Dict[str, TxHandler] = {}


def register_handler(tx_type: str, schema: Schema, apply: TransitionFn) -> TxHandler:
    t = str(tx_type or "").strip().upper()
    if not t:
        raise ValueError("tx_type must be non-empty")
    if t in _HANDLERS:
        raise ValueError(f"handler already registered for {t}")
    h = TxHandler(tx_type=t, schema=schema, apply=apply)
    _HANDLERS[t] = h
    return h


def handler_for(tx_type: str) -> Optional[TxHandler]:
    return _HANDLERS.get(str(tx_type or "").strip().upper())


def supported_tx_types() -> list[str]:
    return sorted(_HANDLERS)


def apply_tx(fork: Fork, tx_type: str, payload: BaseModel, actor: bytes) -> None:
    """Run the transition registered for tx_type against `fork`.

    The payload is already decoded and the actor already authenticated.
    Domain errors propagate to the caller.
    """
    h = handler_for(tx_type)
    if h is None:
        raise KeyError(f"no handler for tx_type {tx_type!r}")
    h.apply(fork, payload, actor)


register_handler(CREATE_TOKEN, CreateTokenPayload, apply_create_token)
