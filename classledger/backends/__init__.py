"""Storage backend implementations for the ClassLedger event log."""

from .base import StorageBackend, InMemoryBackend

# Lazy import to avoid circular dependencies
def __getattr__(name):
    if name == 'SQLiteBackend':
        from .sqlite import SQLiteBackend
        return SQLiteBackend
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    'StorageBackend',
    'InMemoryBackend',
    'SQLiteBackend',
]
