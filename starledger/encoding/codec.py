"""Block body codecs for StarLedger.

Bodies are stored as an opaque text form so the raw record is not readable
at a glance but can always be recovered with the matching codec.
"""

import base64
import binascii
import json
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Union

from ..core.exceptions import DecodeError, EncodeError


class CodecType(Enum):
    """Supported body codecs."""
    HEX = "hex"
    BASE64 = "base64"


def _canonical_json(payload: Any) -> bytes:
    # NaN and Infinity would not decode back to an equal payload
    try:
        text = json.dumps(payload, sort_keys=True, separators=(',', ':'), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodeError(
            f"Payload is not JSON serializable: {e}",
            payload_type=type(payload).__name__,
        ) from e
    return text.encode('utf-8')


def _load_json(raw: bytes, body: str) -> Any:
    try:
        return json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Body is not valid JSON: {e}", body=body) from e


class Codec(ABC):
    """Abstract base class for body codecs."""

    @abstractmethod
    def encode(self, payload: Any) -> str:
        """Encode a JSON-compatible payload."""
        pass

    @abstractmethod
    def decode(self, body: str) -> Any:
        """Recover the payload, raising DecodeError on bad input."""
        pass

    @property
    @abstractmethod
    def type(self) -> CodecType:
        """Get codec type."""
        pass


class HexJSONCodec(Codec):
    """Canonical JSON, hex encoded."""

    def encode(self, payload: Any) -> str:
        return _canonical_json(payload).hex()

    def decode(self, body: str) -> Any:
        if not isinstance(body, str):
            raise DecodeError(f"Body must be a string, got {type(body).__name__}")
        try:
            raw = bytes.fromhex(body)
        except ValueError as e:
            raise DecodeError(f"Body is not valid hex: {e}", body=body) from e
        return _load_json(raw, body)

    @property
    def type(self) -> CodecType:
        return CodecType.HEX


class Base64JSONCodec(Codec):
    """Canonical JSON, base64 encoded."""

    def encode(self, payload: Any) -> str:
        return base64.b64encode(_canonical_json(payload)).decode('ascii')

    def decode(self, body: str) -> Any:
        if not isinstance(body, str):
            raise DecodeError(f"Body must be a string, got {type(body).__name__}")
        try:
            raw = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Body is not valid base64: {e}", body=body) from e
        return _load_json(raw, body)

    @property
    def type(self) -> CodecType:
        return CodecType.BASE64


_CODECS = {
    CodecType.HEX: HexJSONCodec,
    CodecType.BASE64: Base64JSONCodec,
}


def get_codec(codec: Union[Codec, CodecType, str, None] = None) -> Codec:
    """Resolve a codec instance from a type, its name or an instance."""
    if codec is None:
        return HexJSONCodec()
    if isinstance(codec, Codec):
        return codec
    if isinstance(codec, str):
        try:
            codec = CodecType(codec.lower())
        except ValueError:
            raise ValueError(
                f"Unsupported codec: {codec}. "
                f"Supported: {[c.value for c in CodecType]}"
            )
    return _CODECS[codec]()
