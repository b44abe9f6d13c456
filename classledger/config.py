"""Configuration for the ClassLedger execution host."""

from typing import Any, Dict, Literal

from pydantic import BaseModel, field_validator

from .crypto.hashing import HashChain
from .backends.base import StorageBackend, InMemoryBackend


class HostConfig(BaseModel):
    """Host settings.

    Attributes:
        hash_algorithm: Algorithm used to chain events
        require_signatures: Refuse mutating calls that are not signed transactions
        backend: Event storage backend, ``memory`` or ``sqlite``
        db_path: SQLite database file, used when backend is ``sqlite``
    """

    model_config = {"frozen": True}

    hash_algorithm: str = "sha256"
    require_signatures: bool = False
    backend: Literal["memory", "sqlite"] = "memory"
    db_path: str = "classledger.db"

    @field_validator("hash_algorithm")
    @classmethod
    def validate_hash_algorithm(cls, v):
        if v not in HashChain.SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported algorithm: {v}. "
                f"Supported: {list(HashChain.SUPPORTED_ALGORITHMS.keys())}"
            )
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostConfig":
        """Create config from a dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})

    def create_backend(self) -> StorageBackend:
        """Instantiate the configured event storage backend."""
        if self.backend == "sqlite":
            from .backends.sqlite import SQLiteBackend
            return SQLiteBackend(db_path=self.db_path)
        return InMemoryBackend()
