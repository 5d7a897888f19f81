"""
Contact Form Mappers
====================

Contact submissions live in two stores:
- default: ``contact_forms``, one collection for every site's form,
  distinguished by ``source``; ``created_at`` is an ISO string.
- aimsatx: ``contact_submissions`` in the "aimsatx" named database, written
  by the AIM site only (phone is stored as ``phoneNumber``).
"""

from typing import Any, Dict

from fedstore.models import ContactSubmission, RecordType
from fedstore.storage.adapters.base import AdapterProfile, first_value
from fedstore.storage.adapters.timestamps import to_iso

AIMSATX_SOURCE = "AIM"


def map_default_contact(doc_id: str, data: Dict[str, Any]) -> ContactSubmission:
    return ContactSubmission(
        id=doc_id,
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        company=data.get("company") or "",
        email=data.get("email") or "",
        phone=data.get("phone") or "",
        message=data.get("message") or "",
        source=data.get("source") or "",
        created_at=to_iso(data.get("created_at")),
    )


def map_aimsatx_contact(doc_id: str, data: Dict[str, Any]) -> ContactSubmission:
    return ContactSubmission(
        id=doc_id,
        first_name=data.get("firstName") or "",
        last_name=data.get("lastName") or "",
        company=data.get("company") or "",
        email=data.get("email") or "",
        phone=first_value(data, "phoneNumber", "phone"),
        message=data.get("message") or "",
        source=AIMSATX_SOURCE,
        created_at=to_iso(first_value(data, "created_at", "createdAt")),
    )


DEFAULT_CONTACT = AdapterProfile(
    name="default_contact",
    record_type=RecordType.CONTACT_FORMS,
    mapper=map_default_contact,
    field_map={
        "first_name": "firstName",
        "last_name": "lastName",
        "company": "company",
        "email": "email",
        "phone": "phone",
        "message": "message",
        "source": "source",
        "created_at": "created_at",
    },
    pushdown_fields=frozenset({"source"}),
)

AIMSATX_CONTACT = AdapterProfile(
    name="aimsatx_contact",
    record_type=RecordType.CONTACT_FORMS,
    mapper=map_aimsatx_contact,
    field_map={
        "first_name": "firstName",
        "last_name": "lastName",
        "company": "company",
        "email": "email",
        "phone": "phoneNumber",
        "message": "message",
    },
    fixed_values={"source": AIMSATX_SOURCE},
)
