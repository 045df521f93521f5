from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

Json = Dict[str, Any]

OWNER_LEN = 32


@dataclass(frozen=True, slots=True)
class Token:
    """A token record: the symbol and the raw public key of its creator."""

    owner: bytes
    symbol: str

    def __post_init__(self) -> None:
        if not isinstance(self.owner, (bytes, bytearray)) or len(self.owner) != OWNER_LEN:
            raise ValueError(f"token owner must be {OWNER_LEN} raw bytes")
        if not isinstance(self.symbol, str):
            raise ValueError("token symbol must be a string")
        object.__setattr__(self, "owner", bytes(self.owner))

    @staticmethod
    def new(symbol: str, owner: bytes) -> "Token":
        return Token(owner=owner, symbol=symbol)

    @staticmethod
    def from_json(j: Any) -> "Token":
        if not isinstance(j, dict):
            raise ValueError("token record must be a JSON object")
        return Token(owner=bytes.fromhex(str(j.get("owner", ""))), symbol=str(j.get("symbol", "")))

    def to_json(self) -> Json:
        return {"owner": self.owner.hex(), "symbol": self.symbol}
