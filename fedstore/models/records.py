"""
Canonical Records
=================

Unified in-memory shapes that every store adapter maps into and every
caller consumes. Records are materialized at read time only; they are
never written back in canonical form.

Each record class also carries its type-level schema as class variables:
- TIME_FIELD: field used for default sorting and date-range filters
- GROUP_FIELD: field tallied by get_counts()
- SEARCH_FIELDS: fields matched by free-text search
- UPDATABLE_FIELDS: canonical fields that update_record() accepts
- IDEMPOTENT_CREATE: if True, creating a record whose business key already
  exists in the primary store returns the existing id
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Tuple


class RecordType(str, Enum):
    """Record types served by the federation."""
    REGISTRATIONS = "registrations"
    CONTACT_FORMS = "contact_forms"
    EMAIL_SIGNUPS = "email_signups"


def normalize_email(email: Optional[str]) -> str:
    """Lowercase and strip an email address ('' for None)."""
    return (email or "").strip().lower()


@dataclass
class CanonicalRecord(ABC):
    """
    Base class for canonical records.

    Attributes:
        id: Composite id once the record has left the facade, native id
            while it is still inside an adapter
        origin: Tag of the store that produced this instance (transient)
    """
    TIME_FIELD: ClassVar[str] = ""
    GROUP_FIELD: ClassVar[str] = ""
    SEARCH_FIELDS: ClassVar[Tuple[str, ...]] = ()
    UPDATABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset()
    IDEMPOTENT_CREATE: ClassVar[bool] = False
    NORMALIZES_EMAIL: ClassVar[bool] = False

    # JSON keys for to_dict(); fields not listed keep their own name
    JSON_KEYS: ClassVar[Dict[str, str]] = {}

    @abstractmethod
    def business_key(self) -> Optional[Tuple[str, ...]]:
        """
        Derived identity used for cross-store deduplication.

        Returns None when the record has no email, meaning the record
        must never be collapsed with any other record.
        """

    def scope_values(self) -> Dict[str, Any]:
        """Business key fields other than email, used by idempotent create."""
        return {}

    def group_value(self) -> str:
        value = getattr(self, self.GROUP_FIELD, "") or ""
        return value or "Unknown"

    @classmethod
    def normalize_fields(cls, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Apply write-side normalization to a partial field set."""
        normalized = dict(fields)
        if cls.NORMALIZES_EMAIL and "email" in normalized:
            normalized["email"] = normalize_email(normalized["email"])
        return normalized

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape consumed by the admin handlers."""
        data = {}
        for name, value in asdict(self).items():
            if name == "origin":
                data["_dbSource"] = value
                continue
            data[self.JSON_KEYS.get(name, name)] = value
        return data


@dataclass
class EventRegistration(CanonicalRecord):
    """
    Event registration, including walk-ups added on the event day.

    Business key: normalized email + event identifier.
    """
    id: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    company: Optional[str] = None
    subscribe_to_feed: bool = False
    event: str = ""
    event_name: str = ""
    event_date: str = ""
    registered_at: str = ""
    source: str = ""
    tags: List[str] = field(default_factory=list)
    page_url: str = ""
    checked_in: bool = False
    checked_in_at: str = ""
    origin: str = ""

    TIME_FIELD: ClassVar[str] = "registered_at"
    GROUP_FIELD: ClassVar[str] = "event_name"
    SEARCH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "email", "first_name", "last_name", "full_name", "company", "event_name", "source",
    )
    UPDATABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"checked_in", "checked_in_at"})

    JSON_KEYS: ClassVar[Dict[str, str]] = {
        "first_name": "firstName",
        "last_name": "lastName",
        "full_name": "fullName",
        "subscribe_to_feed": "subscribeToFeed",
        "event_name": "eventName",
        "event_date": "eventDate",
        "registered_at": "registeredAt",
        "page_url": "pageUrl",
        "checked_in": "checkedIn",
        "checked_in_at": "checkedInAt",
    }

    def business_key(self) -> Optional[Tuple[str, ...]]:
        email = normalize_email(self.email)
        if not email:
            return None
        return (email, self.event)

    def scope_values(self) -> Dict[str, Any]:
        return {"event": self.event}


@dataclass
class ContactSubmission(CanonicalRecord):
    """
    Contact form submission.

    Business key: normalized email + form source + first and last name,
    so the same person writing through two forms stays two entries.
    """
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    email: str = ""
    phone: str = ""
    message: str = ""
    source: str = ""
    created_at: str = ""
    origin: str = ""

    TIME_FIELD: ClassVar[str] = "created_at"
    GROUP_FIELD: ClassVar[str] = "source"
    SEARCH_FIELDS: ClassVar[Tuple[str, ...]] = (
        "email", "first_name", "last_name", "company", "message", "source",
    )
    UPDATABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({
        "first_name", "last_name", "company", "email", "phone", "message", "source",
    })
    NORMALIZES_EMAIL: ClassVar[bool] = True

    JSON_KEYS: ClassVar[Dict[str, str]] = {
        "first_name": "firstName",
        "last_name": "lastName",
    }

    def business_key(self) -> Optional[Tuple[str, ...]]:
        email = normalize_email(self.email)
        if not email:
            return None
        return (email, self.source, self.first_name, self.last_name)

    def scope_values(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass
class EmailSignup(CanonicalRecord):
    """
    Newsletter email signup.

    Business key: normalized email + case-insensitive signup source.
    """
    id: str = ""
    email: str = ""
    source: str = ""
    created_at: str = ""
    mailchimp_synced: bool = False
    mailchimp_tags: List[str] = field(default_factory=list)
    ip_address: str = ""
    user_agent: str = ""
    page_url: str = ""
    origin: str = ""

    TIME_FIELD: ClassVar[str] = "created_at"
    GROUP_FIELD: ClassVar[str] = "source"
    SEARCH_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "source")
    UPDATABLE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({
        "source", "mailchimp_synced", "mailchimp_tags",
    })
    IDEMPOTENT_CREATE: ClassVar[bool] = True
    NORMALIZES_EMAIL: ClassVar[bool] = True

    def business_key(self) -> Optional[Tuple[str, ...]]:
        email = normalize_email(self.email)
        if not email:
            return None
        return (email, (self.source or "").lower())

    def scope_values(self) -> Dict[str, Any]:
        return {"source": self.source}


RECORD_CLASSES = {
    RecordType.REGISTRATIONS: EventRegistration,
    RecordType.CONTACT_FORMS: ContactSubmission,
    RecordType.EMAIL_SIGNUPS: EmailSignup,
}


def record_class_for(record_type: RecordType) -> type:
    """Return the canonical record class for a record type."""
    return RECORD_CLASSES[RecordType(record_type)]
