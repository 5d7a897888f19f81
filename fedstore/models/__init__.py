"""
Canonical data model for the federated record store.
"""

from .records import (
    RecordType,
    CanonicalRecord,
    EventRegistration,
    ContactSubmission,
    EmailSignup,
    normalize_email,
    record_class_for,
)
from .filters import RecordFilter

__all__ = [
    "RecordType",
    "CanonicalRecord",
    "EventRegistration",
    "ContactSubmission",
    "EmailSignup",
    "RecordFilter",
    "normalize_email",
    "record_class_for",
]
