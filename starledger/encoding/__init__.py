"""Body encoding for StarLedger."""

from .codec import Codec, CodecType, HexJSONCodec, Base64JSONCodec, get_codec

__all__ = [
    'Codec',
    'CodecType',
    'HexJSONCodec',
    'Base64JSONCodec',
    'get_codec',
]
