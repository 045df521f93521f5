from __future__ import annotations

import json
from typing import Iterator, Optional

from tokenledger.ledger.constants import TOKENS_NAMESPACE
from tokenledger.ledger.types import Token
from tokenledger.storage.kv import Fork, Snapshot
from tokenledger.storage.sqlite_db import canon_json


class TokenSchema:
    """Typed access to the `cryptocurrency.tokens` map through a view.

    Reads work on any view. `put` needs a Fork; a read-only Snapshot raises
    TypeError.
    """

    def __init__(self, view: Snapshot) -> None:
        self.view = view

    def token(self, symbol: str) -> Optional[Token]:
        raw = self.view.get(TOKENS_NAMESPACE, symbol)
        if raw is None:
            return None
        return Token.from_json(json.loads(raw))

    def tokens(self) -> Iterator[Token]:
        for _symbol, raw in self.view.iterate(TOKENS_NAMESPACE):
            yield Token.from_json(json.loads(raw))

    def put_token(self, symbol: str, token: Token) -> None:
        if not isinstance(self.view, Fork):
            raise TypeError("token writes require a mutable fork")
        self.view.put(TOKENS_NAMESPACE, symbol, canon_json(token.to_json()))
