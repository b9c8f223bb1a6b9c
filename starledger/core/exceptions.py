"""Exception classes for StarLedger."""

from typing import Optional, Any, List


class StarLedgerError(Exception):
    """Base exception for all StarLedger errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ChainInvalidError(StarLedgerError):
    """Raised when the chain fails self-validation before an append."""

    def __init__(self, message: str, invalid_heights: Optional[List[int]] = None):
        details = {"invalid_heights": invalid_heights}
        super().__init__(message, details)
        self.invalid_heights = invalid_heights or []


class DecodeError(StarLedgerError):
    """Raised when a block body cannot be decoded."""

    def __init__(self, message: str, body: Optional[str] = None):
        details = {"body": body}
        super().__init__(message, details)
        self.body = body


class EncodeError(StarLedgerError):
    """Raised when a payload cannot be encoded into a block body."""

    def __init__(self, message: str, payload_type: Optional[str] = None):
        details = {"payload_type": payload_type}
        super().__init__(message, details)
        self.payload_type = payload_type


class OwnershipError(StarLedgerError):
    """Base exception for rejected ownership claims.

    These are always recoverable: the caller can request a fresh challenge
    and submit again.
    """


class MalformedMessageError(OwnershipError):
    """Raised when a challenge message does not have the expected shape."""

    def __init__(self, message: str, raw_message: Optional[str] = None):
        details = {"raw_message": raw_message}
        super().__init__(message, details)
        self.raw_message = raw_message


class ExpiredChallengeError(OwnershipError):
    """Raised when a challenge message is outside the freshness window."""

    def __init__(
        self,
        message: str,
        elapsed_seconds: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        details = {
            "elapsed_seconds": elapsed_seconds,
            "window_seconds": window_seconds,
        }
        super().__init__(message, details)
        self.elapsed_seconds = elapsed_seconds
        self.window_seconds = window_seconds


class InvalidSignatureError(OwnershipError):
    """Raised when signature verification fails."""

    def __init__(self, message: str, address: Optional[str] = None):
        details = {"address": address}
        super().__init__(message, details)
        self.address = address
