"""
Event Registration Mappers
==========================

Registrations live in three stores:
- default: ``event_registrations`` in the primary project (migrated data,
  walk-ups added at the door). Mixed camelCase / snake_case field names.
- techday: ``registrations`` in the "techday" named database, written by
  the SA Tech Day site. Single-event store.
- digitalcanvas: ``event-registrations`` in the Digital Canvas project,
  written by that site for More Human Than Human.
"""

from typing import Any, Dict

from fedstore.models import EventRegistration, RecordType
from fedstore.storage.adapters.base import AdapterProfile, first_value
from fedstore.storage.adapters.timestamps import to_iso

TECHDAY_EVENT = "SATechDay2026"
TECHDAY_EVENT_NAME = "SA Tech Day 2026"
TECHDAY_EVENT_DATE = "2026-04-10"
TECHDAY_SOURCE = "SATechDay"
TECHDAY_PAGE_URL = "https://www.sanantoniotechday.com"

DIGITALCANVAS_EVENT = "MoreHumanThanHuman2026"
DIGITALCANVAS_EVENT_NAME = "More Human Than Human"
DIGITALCANVAS_EVENT_DATE = "2026-02-28"
DIGITALCANVAS_SOURCE = "web-digitalcanvas"


def map_default_registration(doc_id: str, data: Dict[str, Any]) -> EventRegistration:
    """Map a default-store document (handles legacy snake_case spellings)."""
    return EventRegistration(
        id=doc_id,
        email=data.get("email") or "",
        first_name=first_value(data, "firstName", "first_name"),
        last_name=first_value(data, "lastName", "last_name"),
        full_name=first_value(data, "fullName", "full_name", "name"),
        company=data.get("company") or None,
        subscribe_to_feed=bool(first_value(data, "subscribeToFeed", "subscribe_to_feed", default=False)),
        event=data.get("event") or "",
        event_name=first_value(data, "eventName", "event_name"),
        event_date=to_iso(first_value(data, "eventDate", "event_date")),
        registered_at=to_iso(first_value(data, "registeredAt", "registered_at", "createdAt", "created_at")),
        source=data.get("source") or "",
        tags=list(data.get("tags") or []),
        page_url=first_value(data, "pageUrl", "page_url"),
        checked_in=bool(data.get("checkedIn", False)),
        checked_in_at=to_iso(data.get("checkedInAt")),
    )


def map_techday_registration(doc_id: str, data: Dict[str, Any]) -> EventRegistration:
    """Map a techday document; event identity is implied by the store."""
    first_name = data.get("firstName") or ""
    last_name = data.get("lastName") or ""
    return EventRegistration(
        id=doc_id,
        email=data.get("email") or "",
        first_name=first_name,
        last_name=last_name,
        full_name=f"{first_name} {last_name}".strip(),
        company=data.get("company") or None,
        subscribe_to_feed=False,
        event=TECHDAY_EVENT,
        event_name=TECHDAY_EVENT_NAME,
        event_date=to_iso(TECHDAY_EVENT_DATE),
        registered_at=to_iso(data.get("createdAt")),
        source=TECHDAY_SOURCE,
        # per-session selections ride along as tags
        tags=["sa-tech-day", *(data.get("events") or [])],
        page_url=TECHDAY_PAGE_URL,
        checked_in=bool(data.get("checkedIn", False)),
        checked_in_at=to_iso(data.get("checkedInAt")),
    )


def map_digitalcanvas_registration(doc_id: str, data: Dict[str, Any]) -> EventRegistration:
    """Map a Digital Canvas document, defaulting the event it was built for."""
    return EventRegistration(
        id=doc_id,
        email=data.get("email") or "",
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        full_name=data.get("fullName") or "",
        company=data.get("company") or None,
        subscribe_to_feed=bool(data.get("subscribeToFeed", False)),
        event=data.get("event") or DIGITALCANVAS_EVENT,
        event_name=data.get("eventName") or DIGITALCANVAS_EVENT_NAME,
        event_date=to_iso(data.get("eventDate") or DIGITALCANVAS_EVENT_DATE),
        registered_at=to_iso(first_value(data, "registeredAt", "createdAt")),
        source=data.get("source") or DIGITALCANVAS_SOURCE,
        tags=list(data.get("tags") or []),
        page_url=data.get("pageUrl") or "",
        checked_in=bool(data.get("checkedIn", False)),
        checked_in_at=to_iso(data.get("checkedInAt")),
    )


_CHECK_IN_FIELDS = {
    "checked_in": "checkedIn",
    "checked_in_at": "checkedInAt",
}

DEFAULT_REGISTRATION = AdapterProfile(
    name="default_registration",
    record_type=RecordType.REGISTRATIONS,
    mapper=map_default_registration,
    field_map={
        "email": "email",
        "first_name": "firstName",
        "last_name": "lastName",
        "full_name": "fullName",
        "company": "company",
        "subscribe_to_feed": "subscribeToFeed",
        "event": "event",
        "event_name": "eventName",
        "event_date": "eventDate",
        "registered_at": "registeredAt",
        "source": "source",
        "tags": "tags",
        "page_url": "pageUrl",
        **_CHECK_IN_FIELDS,
    },
    pushdown_fields=frozenset({"event", "source"}),
)

TECHDAY_REGISTRATION = AdapterProfile(
    name="techday_registration",
    record_type=RecordType.REGISTRATIONS,
    mapper=map_techday_registration,
    field_map=dict(_CHECK_IN_FIELDS),
    fixed_values={"event": TECHDAY_EVENT, "source": TECHDAY_SOURCE},
)

DIGITALCANVAS_REGISTRATION = AdapterProfile(
    name="digitalcanvas_registration",
    record_type=RecordType.REGISTRATIONS,
    mapper=map_digitalcanvas_registration,
    field_map=dict(_CHECK_IN_FIELDS),
)
