"""
Storage backend abstraction for RelBoard.

Supports multiple storage backends:
- LocalBackend: JSON files with in-process change notifications (default)
- SupabaseBackend: Cloud PostgreSQL with real-time sync
"""

from relboard.storage.protocol import StorageBackend
from relboard.storage.local_backend import LocalBackend
from relboard.storage.factory import create_backend

__all__ = [
    'StorageBackend',
    'LocalBackend',
    'create_backend',
]
