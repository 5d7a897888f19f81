"""
Federation Registry
===================

Builds the full federation from its configuration: one client per backing
store, one adapter per (store, record type) binding, one facade per record
type.

Usage:
    from fedstore import build_federation

    federation = build_federation()
    registrations = await federation.registrations.list_records()
    await federation.check_in("techday:abc123")
    await federation.close()

Tests inject their own clients:
    federation = build_federation(config, clients={"default": fake, "techday": fake2})
"""

import asyncio
from typing import Any, Dict, Mapping, Optional

import structlog

from fedstore.config import FederationConfig, load_federation_config
from fedstore.models import RecordType
from fedstore.storage.adapters import PROFILES, StoreAdapter
from fedstore.storage.adapters.timestamps import now_iso
from fedstore.storage.client import FirestoreClient
from fedstore.storage.federated import FederatedRecordStore
from fedstore.storage.identity import IdentityRouter
from fedstore.storage.merge import MergeEngine

log = structlog.get_logger()


class RecordFederation:
    """
    All federated record stores of one deployment.

    Attributes:
        registrations: Event registrations facade
        contact_forms: Contact form submissions facade
        email_signups: Email signups facade
        clients: Document clients keyed by store tag
    """

    def __init__(self, stores: Mapping[RecordType, FederatedRecordStore], clients: Mapping[str, Any]):
        self._stores = dict(stores)
        self.clients = dict(clients)

    def store(self, record_type: RecordType) -> FederatedRecordStore:
        """Facade for a record type (accepts the enum or its value)."""
        try:
            return self._stores[RecordType(record_type)]
        except KeyError:
            raise ValueError(f"No stores configured for record type '{record_type}'") from None

    @property
    def registrations(self) -> FederatedRecordStore:
        return self.store(RecordType.REGISTRATIONS)

    @property
    def contact_forms(self) -> FederatedRecordStore:
        return self.store(RecordType.CONTACT_FORMS)

    @property
    def email_signups(self) -> FederatedRecordStore:
        return self.store(RecordType.EMAIL_SIGNUPS)

    async def check_in(self, record_id: str, checked_in: bool = True) -> bool:
        """
        Mark a registration as checked in (or undo it).

        The write goes to the store that owns the registration.
        """
        fields = {
            "checked_in": checked_in,
            "checked_in_at": now_iso() if checked_in else "",
        }
        return await self.registrations.update_record(record_id, fields)

    async def health_check(self) -> Dict[str, bool]:
        """Reachability of every backing store, keyed by tag."""
        tags = list(self.clients)
        results = await asyncio.gather(*(self.clients[tag].health_check() for tag in tags))
        return dict(zip(tags, results))

    async def close(self):
        """Release every client handle."""
        for tag, client in self.clients.items():
            await client.close()
        log.info("Federation closed", stores=list(self.clients))


def build_federation(
    config: Optional[FederationConfig] = None,
    clients: Optional[Mapping[str, Any]] = None,
) -> RecordFederation:
    """
    Build a RecordFederation.

    Args:
        config: Federation layout (default: load_federation_config())
        clients: Document clients keyed by store tag; stores without an
                 injected client get a lazily-connecting FirestoreClient

    Returns:
        RecordFederation with one facade per configured record type
    """
    config = config or load_federation_config()
    clients = dict(clients or {})
    for tag, settings in config.stores.items():
        if tag not in clients:
            clients[tag] = FirestoreClient(tag, settings.to_firestore_config())

    merge_engine = MergeEngine(config.priority)
    reserved = list(config.stores)

    stores = {}
    for record_type, bindings in config.record_types.items():
        adapters = [
            StoreAdapter(b.store, clients[b.store], b.collection, PROFILES[b.profile])
            for b in bindings
        ]
        router = IdentityRouter(
            config.primary,
            [a.tag for a in adapters],
            reserved_tags=reserved,
            record_type=record_type.value,
        )
        stores[record_type] = FederatedRecordStore(
            record_type,
            adapters=adapters,
            router=router,
            merge_engine=merge_engine,
            primary_tag=config.primary,
            adapter_timeout=config.adapter_timeout_seconds,
        )

    log.info(
        "Federation built",
        record_types=[t.value for t in stores],
        stores=list(clients),
    )
    return RecordFederation(stores, clients)
