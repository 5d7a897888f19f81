"""
Federation Errors
=================

Exception taxonomy for the federated record store.

Read path (list/counts/export) degrades on AdapterUnavailable and
SchemaMappingError. Write path (create/update/delete) always propagates.
"""

from typing import Optional


class FederationError(Exception):
    """Base class for every error raised by the federation layer."""


class AdapterUnavailable(FederationError):
    """A backing store could not be reached or did not answer in time."""

    def __init__(self, tag: str, reason: str = ""):
        self.tag = tag
        self.reason = reason
        message = f"Store '{tag}' is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnknownStoreTag(FederationError):
    """A composite id references a tag with no configured adapter."""

    def __init__(self, tag: str, record_type: Optional[str] = None):
        self.tag = tag
        self.record_type = record_type
        message = f"No store configured for tag '{tag}'"
        if record_type:
            message = f"{message} (record type: {record_type})"
        super().__init__(message)


class RecordNotFound(FederationError):
    """The resolved store holds no native document with the given id."""

    def __init__(self, tag: str, native_id: str):
        self.tag = tag
        self.native_id = native_id
        super().__init__(f"Record '{native_id}' not found in store '{tag}'")


class SchemaMappingError(FederationError):
    """A native document lacks a field its mapper requires."""

    def __init__(self, doc_id: str, field: str, tag: Optional[str] = None):
        self.doc_id = doc_id
        self.field = field
        self.tag = tag
        super().__init__(f"Document '{doc_id}' is missing required field '{field}'")

    def __str__(self) -> str:
        location = f" in store '{self.tag}'" if self.tag else ""
        return f"Document '{self.doc_id}'{location} is missing required field '{self.field}'"
