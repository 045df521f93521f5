from __future__ import annotations

"""tokenledger.runtime.transitions

State transitions of the cryptocurrency service.

CREATE_TOKEN
  symbol absent  -> insert {owner: actor, symbol}
  symbol present -> TokenAlreadyExists, fork left untouched

Uniqueness rests on the read-then-write below. It is only sound because the
executor applies transitions one at a time, each on its own fork; running it
under interleaved execution needs per-symbol locking on top.
"""

import logging

from tokenledger.ledger.schema import TokenSchema
from tokenledger.ledger.types import Token
from tokenledger.runtime.errors import TokenAlreadyExists
from tokenledger.runtime.runtime_logging import log_event
from tokenledger.runtime.tx_schema import CreateTokenPayload
from tokenledger.storage.kv import Fork

log = logging.getLogger("tokenledger.tokens")


def create_token(fork: Fork, symbol: str, actor: bytes) -> None:
    """Create `symbol` owned by the authenticated `actor` (raw 32-byte key)."""
    schema = TokenSchema(fork)
    if schema.token(symbol) is not None:
        raise TokenAlreadyExists(symbol)

    token = Token.new(symbol, actor)
    schema.put_token(symbol, token)
    log_event(log, "token_created", symbol=token.symbol, owner=token.owner)


def apply_create_token(fork: Fork, payload: CreateTokenPayload, actor: bytes) -> None:
    create_token(fork, payload.symbol, actor)
