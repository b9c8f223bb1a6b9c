"""Ownership verification workflow for StarLedger.

A wallet proves it controls an address before a star is registered:

1. ``request_message_ownership_verification(address)`` returns
   ``"<address>:<epoch_ms>:<tag>"``.
2. The wallet signs that exact text out of band.
3. ``submit_star(address, message, signature, star)`` checks the message
   shape, its freshness and the signature, then appends a block holding
   ``{"owner": address, "star": star}``.

Nothing touches the ledger until all three checks have passed.
"""

import asyncio
from typing import Any, Dict, List, Optional
import logging

from .block import Block
from .exceptions import (
    EncodeError,
    ExpiredChallengeError,
    InvalidSignatureError,
    MalformedMessageError,
)
from .ledger import Ledger, to_epoch_ms
from ..crypto.signatures import Ed25519Verifier, MessageVerifier

logger = logging.getLogger(__name__)

FIVE_MINUTES_IN_SECONDS = 300
MAX_CLOCK_SKEW_SECONDS = 5
MAX_TIMESTAMP_DIGITS = 20
DEFAULT_TAG = "starRegistry"


class StarRegistry:
    """Gates ledger appends behind a signed challenge."""

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        verifier: Optional[MessageVerifier] = None,
        tag: str = DEFAULT_TAG,
        window_seconds: int = FIVE_MINUTES_IN_SECONDS,
        claim_field: str = "star",
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if not tag or ":" in tag:
            raise ValueError("tag must be non-empty and contain no ':'")
        if claim_field == "owner":
            raise ValueError("claim_field cannot be 'owner'")

        self.ledger = ledger or Ledger()
        self.verifier = verifier or Ed25519Verifier()
        self.tag = tag
        self.window_seconds = window_seconds
        self.claim_field = claim_field

    def request_message_ownership_verification(self, address: str) -> str:
        """Build the challenge message the wallet must sign."""
        if not address or ":" in address:
            raise ValueError(f"Invalid address: {address!r}")
        return f"{address}:{to_epoch_ms(self.ledger.clock())}:{self.tag}"

    issue_challenge = request_message_ownership_verification

    def _parse_message_time(self, address: str, message: str) -> int:
        parts = message.split(":") if isinstance(message, str) else []
        if len(parts) != 3:
            raise MalformedMessageError(
                "Message must have the form <address>:<timestamp>:<tag>",
                raw_message=message,
            )

        message_address, raw_time, tag = parts
        if message_address != address:
            raise MalformedMessageError(
                "Message was issued for a different address",
                raw_message=message,
            )
        if tag != self.tag:
            raise MalformedMessageError(f"Unexpected message tag: {tag}", raw_message=message)
        if not (raw_time.isascii() and raw_time.isdigit()) or len(raw_time) > MAX_TIMESTAMP_DIGITS:
            raise MalformedMessageError(f"Invalid message timestamp: {raw_time[:32]!r}", raw_message=message)

        return int(raw_time)

    def _check_freshness(self, message_time_ms: int) -> None:
        elapsed_seconds = (to_epoch_ms(self.ledger.clock()) - message_time_ms) // 1000

        if elapsed_seconds >= self.window_seconds:
            raise ExpiredChallengeError(
                "Time elapsed between the message was sent and the current time "
                f"must be less than {self.window_seconds} seconds",
                elapsed_seconds=elapsed_seconds,
                window_seconds=self.window_seconds,
            )
        if elapsed_seconds < -MAX_CLOCK_SKEW_SECONDS:
            raise ExpiredChallengeError(
                "Message timestamp is in the future",
                elapsed_seconds=elapsed_seconds,
                window_seconds=self.window_seconds,
            )

    def submit_star(self, address: str, message: str, signature: str, star: Any) -> Block:
        """Verify ownership of ``address`` and register ``star``.

        Args:
            address: Wallet address claiming the star
            message: Challenge message previously issued for the address
            signature: Wallet signature over ``message``
            star: Claim payload, any JSON-compatible value

        Returns:
            The committed block

        Raises:
            MalformedMessageError: If the message shape is wrong
            ExpiredChallengeError: If the challenge is outside the window
            InvalidSignatureError: If the signature does not verify
            EncodeError: If ``star`` is not JSON serializable
            ChainInvalidError: If the ledger refuses the append
        """
        try:
            message_time_ms = self._parse_message_time(address, message)
            self._check_freshness(message_time_ms)

            if not self.verifier.verify(message, address, signature):
                raise InvalidSignatureError("Message is not valid", address=address)

            block = Block.from_payload(
                {"owner": address, self.claim_field: star},
                codec=self.ledger.codec,
            )
        except (MalformedMessageError, ExpiredChallengeError, InvalidSignatureError, EncodeError) as e:
            logger.warning(f"Rejected claim for {address}: {e.message}")
            raise

        return self.ledger.append(block)

    submit_claim = submit_star

    def get_stars_by_wallet_address(self, address: str) -> List[Dict[str, Any]]:
        """Decoded star records registered by ``address``."""
        return self.ledger.get_records_by_owner(address)

    async def submit_star_async(
        self,
        address: str,
        message: str,
        signature: str,
        star: Any,
    ) -> Block:
        """Async version of submit_star."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            self.submit_star,
            address,
            message,
            signature,
            star,
        )

    submit_claim_async = submit_star_async
