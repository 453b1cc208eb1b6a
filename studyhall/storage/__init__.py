"""
Storage Package
Local persistence adapter shared by the client widgets
"""
from studyhall.storage.backends import (
    MemoryBackend,
    QuotaExceededError,
    StorageUnavailableError,
)
from studyhall.storage.adapter import StorageAdapter
from studyhall.storage import keys

__all__ = [
    'MemoryBackend',
    'QuotaExceededError',
    'StorageUnavailableError',
    'StorageAdapter',
    'keys',
]
