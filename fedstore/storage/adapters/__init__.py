"""
Store adapters.

One StoreAdapter per (backing store, record type) pair, each driven by an
AdapterProfile holding a pure mapper function and push-down rules.
"""

from fedstore.storage.adapters.base import AdapterProfile, StoreAdapter
from fedstore.storage.adapters.registrations import (
    DEFAULT_REGISTRATION,
    TECHDAY_REGISTRATION,
    DIGITALCANVAS_REGISTRATION,
)
from fedstore.storage.adapters.contact_forms import DEFAULT_CONTACT, AIMSATX_CONTACT
from fedstore.storage.adapters.email_signups import DEFAULT_SIGNUP, AIMSATX_SIGNUP

PROFILES = {
    profile.name: profile
    for profile in (
        DEFAULT_REGISTRATION,
        TECHDAY_REGISTRATION,
        DIGITALCANVAS_REGISTRATION,
        DEFAULT_CONTACT,
        AIMSATX_CONTACT,
        DEFAULT_SIGNUP,
        AIMSATX_SIGNUP,
    )
}

__all__ = [
    "AdapterProfile",
    "StoreAdapter",
    "PROFILES",
]
