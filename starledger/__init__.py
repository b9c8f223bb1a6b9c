"""StarLedger - in-memory, hash-linked star registry.

An append-only chain of blocks, each bound to its predecessor by hash, with
a challenge/response workflow that lets a wallet prove it owns an address
before a claim is recorded on its behalf.
"""

from starledger.core.block import Block
from starledger.core.ledger import Ledger, LedgerStats, GENESIS_PAYLOAD
from starledger.core.registry import StarRegistry
from starledger.core.exceptions import (
    StarLedgerError,
    ChainInvalidError,
    DecodeError,
    EncodeError,
    OwnershipError,
    MalformedMessageError,
    ExpiredChallengeError,
    InvalidSignatureError,
)

__version__ = "1.0.0"

__all__ = [
    "Block",
    "Ledger",
    "LedgerStats",
    "GENESIS_PAYLOAD",
    "StarRegistry",
    "StarLedgerError",
    "ChainInvalidError",
    "DecodeError",
    "EncodeError",
    "OwnershipError",
    "MalformedMessageError",
    "ExpiredChallengeError",
    "InvalidSignatureError",
]
