"""Cryptographic components for ClassLedger."""

from .hashing import HashChain
from .identity import (
    Account,
    address_from_public_key,
    is_address,
    normalize_address,
    verify_signature,
)

__all__ = [
    'HashChain',
    'Account',
    'address_from_public_key',
    'is_address',
    'normalize_address',
    'verify_signature',
]
