"""Message signatures for StarLedger.

An address is the hex encoding of the wallet's public key, so a verifier can
check ``(message, address, signature)`` without any key registry:

* ed25519: the raw 32-byte public key.
* ecdsa: the compressed SEC1 point (secp256k1 by default).

Signatures travel as base64 text.
"""

import base64
import binascii
from abc import ABC, abstractmethod
from typing import Optional, Union, Dict, Type
import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

logger = logging.getLogger(__name__)

_CURVES = {
    "secp256k1": ec.SECP256K1,
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
}


def _load_private_key(private_key: Union[str, bytes]):
    if isinstance(private_key, str):
        private_key = private_key.encode('utf-8')
    return serialization.load_pem_private_key(private_key, password=None)


def _private_key_pem(private_key) -> str:
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )
    return pem.decode('utf-8')


class MessageVerifier(ABC):
    """Checks that ``signature`` over ``message`` was made by ``address``."""

    scheme: str = ""

    @abstractmethod
    def verify(self, message: str, address: str, signature: str) -> bool:
        """Return True only for a valid signature; never raises on bad input."""
        pass


class Ed25519Verifier(MessageVerifier):
    """Ed25519 message verification."""

    scheme = "ed25519"

    def verify(self, message: str, address: str, signature: str) -> bool:
        try:
            public_key = ed25519.Ed25519PublicKey.from_public_bytes(bytes.fromhex(address))
            public_key.verify(base64.b64decode(signature, validate=True), message.encode('utf-8'))
            return True
        except (InvalidSignature, ValueError, TypeError, binascii.Error) as e:
            logger.debug(f"Ed25519 verification failed for {address}: {e!r}")
            return False


class ECDSAVerifier(MessageVerifier):
    """ECDSA/SHA-256 message verification over compressed-point addresses."""

    scheme = "ecdsa"

    def __init__(self, curve: str = "secp256k1"):
        if curve not in _CURVES:
            raise ValueError(f"Unsupported curve: {curve}")
        self.curve = curve

    def verify(self, message: str, address: str, signature: str) -> bool:
        try:
            public_key = ec.EllipticCurvePublicKey.from_encoded_point(
                _CURVES[self.curve](), bytes.fromhex(address)
            )
            public_key.verify(
                base64.b64decode(signature, validate=True),
                message.encode('utf-8'),
                ec.ECDSA(hashes.SHA256())
            )
            return True
        except (InvalidSignature, UnsupportedAlgorithm, ValueError, TypeError, binascii.Error) as e:
            logger.debug(f"ECDSA verification failed for {address}: {e!r}")
            return False


class Wallet(ABC):
    """Holds a private key and signs challenge messages."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Public address derived from the key."""
        pass

    @abstractmethod
    def sign_message(self, message: str) -> str:
        """Sign the exact message text and return a base64 signature."""
        pass

    @abstractmethod
    def get_private_key_pem(self) -> str:
        """Get private key in PEM format."""
        pass


class Ed25519Wallet(Wallet):
    """Ed25519 wallet."""

    def __init__(self, private_key: Optional[Union[str, bytes]] = None):
        if private_key:
            self._private_key = _load_private_key(private_key)
            if not isinstance(self._private_key, ed25519.Ed25519PrivateKey):
                raise ValueError("PEM does not hold an Ed25519 private key")
        else:
            self._private_key = ed25519.Ed25519PrivateKey.generate()

    @property
    def address(self) -> str:
        raw = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw
        )
        return raw.hex()

    def sign_message(self, message: str) -> str:
        signature = self._private_key.sign(message.encode('utf-8'))
        return base64.b64encode(signature).decode('utf-8')

    def get_private_key_pem(self) -> str:
        return _private_key_pem(self._private_key)


class ECDSAWallet(Wallet):
    """ECDSA wallet, secp256k1 by default."""

    def __init__(
        self,
        private_key: Optional[Union[str, bytes]] = None,
        curve: str = "secp256k1",
    ):
        if curve not in _CURVES:
            raise ValueError(f"Unsupported curve: {curve}")
        self.curve = curve

        if private_key:
            self._private_key = _load_private_key(private_key)
            if not isinstance(self._private_key, ec.EllipticCurvePrivateKey):
                raise ValueError("PEM does not hold an EC private key")
        else:
            self._private_key = ec.generate_private_key(_CURVES[curve]())

    @property
    def address(self) -> str:
        point = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint
        )
        return point.hex()

    def sign_message(self, message: str) -> str:
        signature = self._private_key.sign(
            message.encode('utf-8'),
            ec.ECDSA(hashes.SHA256())
        )
        return base64.b64encode(signature).decode('utf-8')

    def get_private_key_pem(self) -> str:
        return _private_key_pem(self._private_key)


_VERIFIERS: Dict[str, Type[MessageVerifier]] = {
    "ED25519": Ed25519Verifier,
    "ECDSA": ECDSAVerifier,
}

_WALLETS: Dict[str, Type[Wallet]] = {
    "ED25519": Ed25519Wallet,
    "ECDSA": ECDSAWallet,
}


def create_verifier(scheme: str = "ed25519", **kwargs) -> MessageVerifier:
    """Factory function to create a message verifier."""
    key = scheme.upper()
    if key not in _VERIFIERS:
        raise ValueError(f"Unsupported signature scheme: {scheme}")
    return _VERIFIERS[key](**kwargs)


def create_wallet(scheme: str = "ed25519", **kwargs) -> Wallet:
    """Factory function to create a wallet."""
    key = scheme.upper()
    if key not in _WALLETS:
        raise ValueError(f"Unsupported signature scheme: {scheme}")
    return _WALLETS[key](**kwargs)
