"""Cryptographic hashing for the ClassLedger event log."""

import hashlib
import json
from typing import Any
from datetime import datetime
from enum import Enum


class HashChain:
    """Implements the hash chain linking consecutive events."""

    SUPPORTED_ALGORITHMS = {
        "sha256": hashlib.sha256,
        "sha512": hashlib.sha512,
        "sha3_256": hashlib.sha3_256,
        "sha3_512": hashlib.sha3_512,
    }

    def __init__(self, algorithm: str = "sha256"):
        if algorithm not in self.SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported algorithm: {algorithm}. "
                f"Supported: {list(self.SUPPORTED_ALGORITHMS.keys())}"
            )

        self.algorithm = algorithm
        self._hash_func = self.SUPPORTED_ALGORITHMS[algorithm]

    def calculate_hash(self, event: Any) -> str:
        """Calculate hash for an event.

        Args:
            event: Event object with to_dict() method or dict

        Returns:
            Hex-encoded hash string
        """
        if hasattr(event, "to_dict"):
            event_dict = event.to_dict()
        else:
            event_dict = event

        # The hash covers everything except itself, previous_hash included
        data_to_hash = {k: v for k, v in event_dict.items() if k != "hash"}
        data_to_hash = self._prepare_for_hashing(data_to_hash)

        canonical_json = json.dumps(data_to_hash, sort_keys=True, separators=(',', ':'))

        hasher = self._hash_func()
        hasher.update(canonical_json.encode('utf-8'))

        return hasher.hexdigest()

    def _prepare_for_hashing(self, data: Any) -> Any:
        """Prepare data for hashing by converting special types."""
        if isinstance(data, datetime):
            return data.isoformat()
        elif isinstance(data, Enum):
            return data.value
        elif isinstance(data, dict):
            return {k: self._prepare_for_hashing(v) for k, v in data.items()}
        elif isinstance(data, (list, tuple)):
            return [self._prepare_for_hashing(item) for item in data]
        else:
            return data
