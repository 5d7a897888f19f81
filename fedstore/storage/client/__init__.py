"""
Firestore client module.

Provides async access to one Firestore backing store per client.
"""

from fedstore.storage.client.config import FirestoreConfig
from fedstore.storage.client.client import FirestoreClient

__all__ = [
    "FirestoreClient",
    "FirestoreConfig",
]
