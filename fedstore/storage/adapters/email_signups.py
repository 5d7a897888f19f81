"""
Email Signup Mappers
====================

Newsletter signups live in two stores:
- default: ``email_signups``, snake_case fields, email already lowercased
  on write, ``created_at`` as an ISO string.
- aimsatx: ``email_signups`` in the "aimsatx" named database (tags and page
  URL use different spellings).

An email signup without an email address carries no information, so both
mappers treat ``email`` as required.
"""

from typing import Any, Dict

from fedstore.models import EmailSignup, RecordType
from fedstore.storage.adapters.base import AdapterProfile, first_value, require
from fedstore.storage.adapters.timestamps import to_iso

AIMSATX_SOURCE = "AIM"


def map_default_signup(doc_id: str, data: Dict[str, Any]) -> EmailSignup:
    return EmailSignup(
        id=doc_id,
        email=require(data, doc_id, "email"),
        source=data.get("source") or "",
        created_at=to_iso(data.get("created_at")),
        mailchimp_synced=bool(data.get("mailchimp_synced", False)),
        mailchimp_tags=list(data.get("mailchimp_tags") or []),
        ip_address=data.get("ip_address") or "",
        user_agent=data.get("user_agent") or "",
        page_url=data.get("page_url") or "",
    )


def map_aimsatx_signup(doc_id: str, data: Dict[str, Any]) -> EmailSignup:
    return EmailSignup(
        id=doc_id,
        email=require(data, doc_id, "email"),
        source=data.get("source") or AIMSATX_SOURCE,
        created_at=to_iso(data.get("created_at")),
        mailchimp_synced=bool(data.get("mailchimp_synced", False)),
        mailchimp_tags=list(first_value(data, "tags", "mailchimp_tags", default=[])),
        page_url=first_value(data, "pageUrl", "page_url"),
    )


DEFAULT_SIGNUP = AdapterProfile(
    name="default_signup",
    record_type=RecordType.EMAIL_SIGNUPS,
    mapper=map_default_signup,
    field_map={
        "email": "email",
        "source": "source",
        "created_at": "created_at",
        "mailchimp_synced": "mailchimp_synced",
        "mailchimp_tags": "mailchimp_tags",
        "ip_address": "ip_address",
        "user_agent": "user_agent",
        "page_url": "page_url",
    },
    pushdown_fields=frozenset({"source"}),
)

AIMSATX_SIGNUP = AdapterProfile(
    name="aimsatx_signup",
    record_type=RecordType.EMAIL_SIGNUPS,
    mapper=map_aimsatx_signup,
    field_map={
        "source": "source",
        "mailchimp_synced": "mailchimp_synced",
        "mailchimp_tags": "tags",
    },
)
