"""Core ledger implementation for StarLedger."""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from pydantic import BaseModel

from .block import Block
from .exceptions import ChainInvalidError, DecodeError
from ..crypto.hashing import HashChain
from ..encoding.codec import Codec, CodecType, get_codec

logger = logging.getLogger(__name__)

GENESIS_PAYLOAD = {"data": "Genesis Block"}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(moment.timestamp() * 1000)


class LedgerStats(BaseModel):
    """Ledger statistics."""

    total_blocks: int = 0
    height: int = -1
    hash_algorithm: str = "sha256"
    codec: str = CodecType.HEX.value
    first_block_time: Optional[str] = None
    last_block_time: Optional[str] = None
    integrity_verified: bool = True
    last_verification_time: Optional[datetime] = None


class Ledger:
    """Append-only, hash-linked chain of blocks held in memory."""

    def __init__(
        self,
        hash_algorithm: str = "sha256",
        codec: Union[Codec, CodecType, str, None] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.hash_chain = HashChain(algorithm=hash_algorithm)
        self.codec = get_codec(codec)
        self.clock = clock or utc_now

        self._chain: List[Block] = []
        self._height = -1

        # Thread safety
        self._lock = threading.RLock()
        self._write_lock = threading.Lock()

        self._integrity_verified = True
        self._last_verification_time: Optional[datetime] = None

        self.initialize()

    def initialize(self) -> None:
        """Create the genesis block unless the chain already has one."""
        if self._height == -1:
            genesis = self.append(Block.from_payload(GENESIS_PAYLOAD, codec=self.codec))
            logger.info(f"Genesis block created: {genesis.hash}")

    @property
    def height(self) -> int:
        """Height of the last block; -1 before genesis."""
        with self._lock:
            return self._height

    def get_chain_height(self) -> int:
        return self.height

    def __len__(self) -> int:
        with self._lock:
            return len(self._chain)

    def _generate_new_time(self) -> str:
        return str(to_epoch_ms(self.clock()))

    def append(self, block: Block) -> Block:
        """Commit a block to the end of the chain.

        Height, link, time and hash supplied by the caller are ignored; the
        ledger assigns them.

        Args:
            block: Block carrying the encoded body

        Returns:
            The committed block

        Raises:
            ChainInvalidError: If the existing chain fails validation
        """
        with self._write_lock:
            invalid = self.validate_chain()
            if invalid:
                heights = [b.height for b in invalid]
                logger.warning(f"Refusing append, invalid blocks at heights {heights}")
                raise ChainInvalidError("Blockchain is not valid", invalid_heights=heights)

            with self._lock:
                new_height = self._height + 1
                previous_hash = self._chain[-1].hash if new_height > 0 else None

            sealed = block.model_copy(update={
                "height": new_height,
                "previous_block_hash": previous_hash,
                "time": self._generate_new_time(),
                "hash": None,
            })
            sealed = sealed.model_copy(update={"hash": sealed.compute_hash(self.hash_chain)})

            with self._lock:
                self._chain.append(sealed)
                self._height = new_height

            logger.info(f"Committed block {new_height}: {sealed.hash}")
            return sealed

    def get_blocks(self) -> List[Block]:
        """Snapshot of the chain in height order."""
        with self._lock:
            return list(self._chain)

    def get_block_by_hash(self, block_hash: str) -> Optional[Block]:
        """Get the first block with the given hash.

        Args:
            block_hash: Block hash

        Returns:
            Block if found, None otherwise
        """
        for block in self.get_blocks():
            if block.hash == block_hash:
                return block
        return None

    def get_block_by_height(self, height: int) -> Optional[Block]:
        """Get the block at a height, or None."""
        with self._lock:
            if 0 <= height < len(self._chain):
                return self._chain[height]
            return None

    def get_records_by_owner(self, address: str) -> List[Dict[str, Any]]:
        """Decoded payloads owned by ``address``, in chain order.

        Blocks whose body cannot be decoded are skipped.
        """
        records = []
        for block in self.get_blocks():
            if block.height == 0:
                continue
            try:
                payload = block.decode_body(self.codec)
            except DecodeError as e:
                logger.debug(f"Skipping undecodable block {block.height}: {e}")
                continue

            if isinstance(payload, dict) and payload.get("owner") == address:
                records.append(payload)
        return records

    def validate_chain(self) -> List[Block]:
        """Check every block's hash and its link to the predecessor.

        Returns:
            Blocks found invalid, in height order; empty if the chain is valid
        """
        errors = []
        chain = self.get_blocks()

        for index, block in enumerate(chain):
            valid = block.height == index and block.verify(self.hash_chain)

            if index > 0 and block.previous_block_hash != chain[index - 1].hash:
                valid = False

            if not valid:
                errors.append(block)

        with self._lock:
            self._integrity_verified = not errors
            self._last_verification_time = self.clock()

        if errors:
            logger.warning(f"Chain validation found {len(errors)} invalid block(s)")
        return errors

    def get_stats(self) -> LedgerStats:
        """Get ledger statistics."""
        chain = self.get_blocks()
        with self._lock:
            return LedgerStats(
                total_blocks=len(chain),
                height=len(chain) - 1,
                hash_algorithm=self.hash_chain.algorithm,
                codec=self.codec.type.value,
                first_block_time=chain[0].time if chain else None,
                last_block_time=chain[-1].time if chain else None,
                integrity_verified=self._integrity_verified,
                last_verification_time=self._last_verification_time,
            )

    def tamper_with_block_by_height(
        self,
        height: int,
        forged_hash: Optional[str] = None,
    ) -> Optional[Block]:
        """Overwrite a committed block's hash. For tests and demos only."""
        with self._lock:
            if not 0 <= height < len(self._chain):
                return None
            forged = self._chain[height].model_copy(
                update={"hash": forged_hash or f"123{height}"}
            )
            self._chain[height] = forged
            return forged

    # Async methods for frameworks like FastAPI

    async def append_async(self, block: Block) -> Block:
        """Async version of append."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.append, block)

    async def validate_chain_async(self) -> List[Block]:
        """Async version of validate_chain."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.validate_chain)

    async def get_block_by_hash_async(self, block_hash: str) -> Optional[Block]:
        """Async version of get_block_by_hash."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.get_block_by_hash, block_hash)

    async def get_block_by_height_async(self, height: int) -> Optional[Block]:
        """Async version of get_block_by_height."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.get_block_by_height, height)

    async def get_records_by_owner_async(self, address: str) -> List[Dict[str, Any]]:
        """Async version of get_records_by_owner."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.get_records_by_owner, address)
