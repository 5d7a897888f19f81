"""
CSV Export
==========

Fixed-column CSV rendering for each record type.

Columns are fixed per record type, whatever store a record came from: a
value the origin store does not carry renders as an empty cell. Dates are
rendered as YYYY-MM-DD and booleans as Yes/No.
"""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

import pandas as pd

from fedstore.models import CanonicalRecord, RecordType
from fedstore.storage.adapters.timestamps import date_part

logger = logging.getLogger(__name__)

Column = Tuple[str, Callable[[CanonicalRecord], str]]


def _text(name: str) -> Callable[[CanonicalRecord], str]:
    return lambda record: str(getattr(record, name, "") or "")


def _date(name: str) -> Callable[[CanonicalRecord], str]:
    return lambda record: date_part(getattr(record, name, "") or "")


def _yes_no(name: str) -> Callable[[CanonicalRecord], str]:
    return lambda record: "Yes" if getattr(record, name, False) else "No"


CSV_COLUMNS: Dict[RecordType, List[Column]] = {
    RecordType.REGISTRATIONS: [
        ("First Name", _text("first_name")),
        ("Last Name", _text("last_name")),
        ("Email", _text("email")),
        ("Company", _text("company")),
        ("Event", _text("event_name")),
        ("Event Date", _date("event_date")),
        ("Registered At", _date("registered_at")),
        ("Subscribe to Feed", _yes_no("subscribe_to_feed")),
        ("Source", _text("source")),
    ],
    RecordType.CONTACT_FORMS: [
        ("First Name", _text("first_name")),
        ("Last Name", _text("last_name")),
        ("Company", _text("company")),
        ("Email", _text("email")),
        ("Phone", _text("phone")),
        ("Message", _text("message")),
        ("Source", _text("source")),
        ("Date", _date("created_at")),
    ],
    RecordType.EMAIL_SIGNUPS: [
        ("Email", _text("email")),
        ("Source", _text("source")),
        ("Signup Date", _date("created_at")),
        ("Mailchimp Synced", _yes_no("mailchimp_synced")),
    ],
}


def csv_headers(record_type: RecordType) -> List[str]:
    return [header for header, _ in CSV_COLUMNS[RecordType(record_type)]]


def records_to_csv(record_type: RecordType, records: Sequence[CanonicalRecord]) -> str:
    """
    Render records as CSV text with the record type's fixed header.

    Args:
        record_type: Record type (selects the column set)
        records: Records in the order they should appear

    Returns:
        CSV text, header line always present
    """
    columns = CSV_COLUMNS[RecordType(record_type)]
    rows = [[render(record) for _, render in columns] for record in records]

    df = pd.DataFrame(rows, columns=[header for header, _ in columns], dtype=str)
    csv_text = df.to_csv(index=False, lineterminator="\n")

    logger.info(f"CSV export rendered: {RecordType(record_type).value}, {len(rows)} rows")
    return csv_text.rstrip("\n")
