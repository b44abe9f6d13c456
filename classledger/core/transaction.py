"""Signed transactions and execution context for ClassLedger."""

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .events import Event
from .exceptions import SignatureError
from ..crypto.identity import Account, address_from_public_key, verify_signature


@dataclass(frozen=True)
class Call:
    """Context the host hands to a contract entry point.

    ``sender`` is the identity bound by the host, either recovered from a
    transaction signature or supplied by a trusted in-process caller. It is
    never taken from the entry point's own arguments.
    """
    sender: str
    tx_id: str
    block_number: int
    timestamp: datetime


class Transaction(BaseModel):
    """A signed request to run a mutating entry point."""

    model_config = {"frozen": True}

    contract: str
    method: str
    args: List[Any] = Field(default_factory=list)
    nonce: int = Field(ge=0)
    public_key: str
    signature: Optional[str] = None

    def signing_payload(self) -> bytes:
        """Canonical bytes covered by the signature."""
        unsigned = {
            "contract": self.contract,
            "method": self.method,
            "args": self.args,
            "nonce": self.nonce,
            "public_key": self.public_key,
        }
        return json.dumps(unsigned, sort_keys=True, separators=(',', ':')).encode('utf-8')

    @classmethod
    def build(cls, account: Account, contract: str, method: str, *args, nonce: int = 0) -> "Transaction":
        """Create a transaction and sign it with ``account``."""
        unsigned = cls(
            contract=contract,
            method=method,
            args=[int(a) if isinstance(a, int) and not isinstance(a, bool) else a for a in args],
            nonce=nonce,
            public_key=account.get_public_key_pem(),
        )
        return unsigned.model_copy(update={"signature": account.sign(unsigned.signing_payload())})

    @property
    def sender(self) -> str:
        """Address of the key that signed this transaction."""
        return address_from_public_key(self.public_key)

    @property
    def tx_hash(self) -> str:
        """Digest identifying this exact signed transaction."""
        hasher = hashlib.sha256()
        hasher.update(self.signing_payload())
        hasher.update((self.signature or "").encode('utf-8'))
        return hasher.hexdigest()

    def verify(self) -> str:
        """Check the signature and return the sender address.

        Raises:
            SignatureError: If the transaction is unsigned or the signature is invalid
        """
        if not self.signature:
            raise SignatureError("Transaction is not signed", nonce=self.nonce)
        try:
            sender = self.sender
        except (ValueError, SignatureError) as e:
            raise SignatureError(f"Unusable public key: {e}", nonce=self.nonce)
        if not verify_signature(self.public_key, self.signing_payload(), self.signature):
            raise SignatureError("Invalid transaction signature", sender=sender, nonce=self.nonce)
        return sender


class Receipt(BaseModel):
    """Outcome of an accepted mutating transaction."""

    tx_id: str
    block_number: int
    sender: str
    contract: str
    method: str
    events: List[Event] = Field(default_factory=list)
    status: str = "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_id": self.tx_id,
            "block_number": self.block_number,
            "sender": self.sender,
            "contract": self.contract,
            "method": self.method,
            "events": [event.to_dict() for event in self.events],
            "status": self.status,
        }
