"""
Federated storage layer.

Store adapters, identity routing, merge engine and the per-record-type
facade. Use fedstore.build_federation() to get a fully wired federation.
"""

from fedstore.storage.errors import (
    FederationError,
    AdapterUnavailable,
    UnknownStoreTag,
    RecordNotFound,
    SchemaMappingError,
)
from fedstore.storage.identity import CompositeId, IdentityRouter
from fedstore.storage.merge import MergeEngine
from fedstore.storage.federated import FederatedRecordStore

__all__ = [
    "FederationError",
    "AdapterUnavailable",
    "UnknownStoreTag",
    "RecordNotFound",
    "SchemaMappingError",
    "CompositeId",
    "IdentityRouter",
    "MergeEngine",
    "FederatedRecordStore",
]
