"""Account identities for ClassLedger.

An identity is an address derived from an Ed25519 public key. Accounts sign
transactions; the host recovers the sender address from the signature, so a
caller can never claim another participant's identity.
"""

import base64
import hashlib
import re
from typing import Optional, Union
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.exceptions import InvalidSignature

from ..core.exceptions import SignatureError, ValidationError

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_address(value) -> bool:
    """Check whether a value looks like an account address."""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(value, field: str = "address") -> str:
    """Validate an address and return its canonical lower-case form.

    Raises:
        ValidationError: If the value is not a well-formed address
    """
    if not is_address(value):
        raise ValidationError(f"Invalid address: {value!r}", field=field, value=value)
    return value.lower()


def _load_public_key(public_key: Union[str, bytes]) -> ed25519.Ed25519PublicKey:
    if isinstance(public_key, str):
        public_key = public_key.encode('utf-8')
    key = serialization.load_pem_public_key(public_key)
    if not isinstance(key, ed25519.Ed25519PublicKey):
        raise SignatureError("Only Ed25519 public keys are supported")
    return key


def _raw_public_bytes(key: ed25519.Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def address_from_public_key(public_key: Union[str, bytes]) -> str:
    """Derive the account address for a PEM-encoded public key."""
    raw = _raw_public_bytes(_load_public_key(public_key))
    return "0x" + hashlib.sha3_256(raw).digest()[-20:].hex()


def verify_signature(public_key: Union[str, bytes], data: bytes, signature: str) -> bool:
    """Verify a base64 Ed25519 signature against a PEM public key."""
    try:
        key = _load_public_key(public_key)
        key.verify(base64.b64decode(signature), data)
        return True
    except (InvalidSignature, ValueError, SignatureError) as e:
        logger.debug(f"Signature rejected: {e}")
        return False


class Account:
    """An Ed25519 key pair acting as a ledger identity."""

    def __init__(self, private_key: Optional[Union[str, bytes]] = None):
        if private_key:
            if isinstance(private_key, str):
                private_key = private_key.encode('utf-8')
            key = serialization.load_pem_private_key(private_key, password=None)
            if not isinstance(key, ed25519.Ed25519PrivateKey):
                raise SignatureError("Only Ed25519 private keys are supported")
            self._private_key = key
        else:
            self._private_key = ed25519.Ed25519PrivateKey.generate()
        self._public_key = self._private_key.public_key()
        self.address = "0x" + hashlib.sha3_256(
            _raw_public_bytes(self._public_key)
        ).digest()[-20:].hex()

    @classmethod
    def generate(cls) -> "Account":
        """Create an account with a fresh key pair."""
        return cls()

    def sign(self, data: bytes) -> str:
        """Sign data and return a base64-encoded signature."""
        signature = self._private_key.sign(data)
        return base64.b64encode(signature).decode('utf-8')

    def verify(self, data: bytes, signature: str) -> bool:
        """Verify a signature made by this account."""
        return verify_signature(self.get_public_key_pem(), data, signature)

    def get_public_key_pem(self) -> str:
        """Get public key in PEM format."""
        pem = self._public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )
        return pem.decode('utf-8')

    def get_private_key_pem(self) -> str:
        """Get private key in PEM format."""
        pem = self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )
        return pem.decode('utf-8')

    def __repr__(self) -> str:
        return f"Account({self.address})"
