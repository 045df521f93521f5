# src/tokenledger/crypto/identity.py
from __future__ import annotations

"""Deterministic 16-byte addresses for ledger entities.

Layout:
  address = [tag] ++ sha256(preimage)[:15]

Tags select the entity namespace, so two addresses of different kinds always
differ in their first byte regardless of digest collisions:

  160  account   preimage = raw 32-byte public key
  176  token     preimage = owner_id ++ utf8(symbol)   (no separator)

192 and 208 are reserved. Nothing produces or consumes them.
"""

import hashlib
from dataclasses import dataclass
from typing import Final, Union

ACCOUNT_TAG: Final[int] = 160
TOKEN_TAG: Final[int] = 176
RESERVED_TAG_C: Final[int] = 192
RESERVED_TAG_D: Final[int] = 208

ADDRESS_LEN: Final[int] = 16
DIGEST_PREFIX_LEN: Final[int] = ADDRESS_LEN - 1


@dataclass(frozen=True, slots=True)
class AccountDescriptor:
    public_key: bytes


@dataclass(frozen=True, slots=True)
class TokenDescriptor:
    owner_id: bytes
    symbol: str


EntityDescriptor = Union[AccountDescriptor, TokenDescriptor]


def _preimage(descriptor: EntityDescriptor) -> tuple[bytes, int]:
    match descriptor:
        case AccountDescriptor(public_key=pk):
            return bytes(pk), ACCOUNT_TAG
        case TokenDescriptor(owner_id=owner_id, symbol=symbol):
            return bytes(owner_id) + symbol.encode("utf-8"), TOKEN_TAG
    raise TypeError(f"unsupported descriptor: {type(descriptor).__name__}")


def derive_address(descriptor: EntityDescriptor) -> bytes:
    """Return the 16-byte address for an account or token descriptor."""
    preimage, tag = _preimage(descriptor)
    digest = hashlib.sha256(preimage).digest()
    return bytes([tag]) + digest[:DIGEST_PREFIX_LEN]


def account_address(public_key: bytes) -> bytes:
    return derive_address(AccountDescriptor(public_key))


def token_address(owner_public_key: bytes, symbol: str) -> bytes:
    """Token address scoped under the owner's account address."""
    return derive_address(TokenDescriptor(owner_id=account_address(owner_public_key), symbol=symbol))


def address_tag(address: bytes) -> int:
    if len(address) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(address)}")
    return address[0]
