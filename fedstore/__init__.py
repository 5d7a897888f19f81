"""
fedstore
========

Federated record store: event registrations, contact form submissions and
email signups spread across several Firestore databases, presented as one
logical collection per record type.

Usage:
    from fedstore import build_federation, RecordFilter

    federation = build_federation()
    records = await federation.registrations.list_records(
        RecordFilter(equals={"event": "SATechDay2026"}, search="acme")
    )
    csv_text = await federation.contact_forms.export_csv()
"""

__version__ = "0.1.0"

from fedstore.models import (
    RecordType,
    EventRegistration,
    ContactSubmission,
    EmailSignup,
    RecordFilter,
)
from fedstore.storage.registry import RecordFederation, build_federation

__all__ = [
    "RecordType",
    "EventRegistration",
    "ContactSubmission",
    "EmailSignup",
    "RecordFilter",
    "RecordFederation",
    "build_federation",
]
