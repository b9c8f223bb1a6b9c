"""Cryptographic components for StarLedger."""

from .hashing import HashChain
from .signatures import (
    MessageVerifier,
    Ed25519Verifier,
    ECDSAVerifier,
    Wallet,
    Ed25519Wallet,
    ECDSAWallet,
    create_verifier,
    create_wallet,
)

__all__ = [
    'HashChain',
    'MessageVerifier',
    'Ed25519Verifier',
    'ECDSAVerifier',
    'Wallet',
    'Ed25519Wallet',
    'ECDSAWallet',
    'create_verifier',
    'create_wallet',
]
