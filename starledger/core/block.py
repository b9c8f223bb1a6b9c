"""Block model for StarLedger."""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from ..crypto.hashing import HashChain, DEFAULT_HASH_CHAIN
from ..encoding.codec import Codec, get_codec


class Block(BaseModel):
    """Immutable ledger block.

    Height, time, previous_block_hash and hash stay unset until the ledger
    commits the block; the committed block is a sealed copy.
    """

    model_config = {"frozen": True}

    height: Optional[int] = Field(default=None, ge=0)
    time: Optional[str] = None
    previous_block_hash: Optional[str] = None
    hash: Optional[str] = None
    body: str

    @field_validator("body")
    @classmethod
    def validate_body(cls, v):
        """Ensure body is not empty."""
        if not v:
            raise ValueError("Block body cannot be empty")
        return v

    @classmethod
    def from_payload(cls, payload: Any, codec: Optional[Codec] = None) -> "Block":
        """Create an uncommitted block holding the encoded payload.

        Raises:
            EncodeError: If the payload is not JSON serializable
        """
        return cls(body=get_codec(codec).encode(payload))

    def compute_hash(self, hash_chain: Optional[HashChain] = None) -> str:
        """Hash height, time, previous_block_hash and body."""
        return (hash_chain or DEFAULT_HASH_CHAIN).calculate_hash(self)

    def verify(self, hash_chain: Optional[HashChain] = None) -> bool:
        """Check the stored hash against the block's own fields.

        Linkage to neighbouring blocks is the ledger's concern.
        """
        if self.hash is None:
            return False
        return (hash_chain or DEFAULT_HASH_CHAIN).verify_hash(self, self.hash)

    def decode_body(self, codec: Optional[Codec] = None) -> Any:
        """Recover the original payload.

        The body does not record which codec produced it. Without ``codec``
        the hex codec is assumed, so blocks from a ledger configured with
        another codec must be decoded with ``ledger.codec``.

        Raises:
            DecodeError: If the body is not validly encoded
        """
        return get_codec(codec).decode(self.body)

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to dictionary."""
        return {
            "height": self.height,
            "time": self.time,
            "previous_block_hash": self.previous_block_hash,
            "hash": self.hash,
            "body": self.body,
        }

    def to_json(self) -> str:
        """Convert block to JSON string."""
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Block":
        """Create block from dictionary."""
        return cls(**data)
