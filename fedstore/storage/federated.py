"""
Federated Record Store
======================

Facade that presents one record type as a single logical collection over
several backing stores.

Reads fan out to every adapter concurrently, each call bounded by the
adapter timeout. A store that times out or fails contributes nothing and
the merged view is returned from the others; only when every store fails
does the read raise. Writes are routed to exactly one store and never
degrade: failures always propagate to the caller.

Usage:
    store = FederatedRecordStore(
        RecordType.REGISTRATIONS,
        adapters=[default_adapter, techday_adapter, dc_adapter],
        router=router,
        merge_engine=MergeEngine(["default", "techday", "dc"]),
        primary_tag="default",
    )

    records = await store.list_records(RecordFilter(equals={"event": "SATechDay2026"}))
    await store.update_record("techday:abc123", {"checked_in": True})
"""

import asyncio
from collections import Counter
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

import structlog

from fedstore.models import CanonicalRecord, RecordFilter, RecordType, record_class_for
from fedstore.storage.adapters.base import StoreAdapter
from fedstore.storage.adapters.timestamps import date_bound, now_iso
from fedstore.storage.errors import AdapterUnavailable, UnknownStoreTag
from fedstore.storage.export import records_to_csv
from fedstore.storage.identity import IdentityRouter
from fedstore.storage.merge import MergeEngine

log = structlog.get_logger()

DEFAULT_ADAPTER_TIMEOUT = 8.0


class FederatedRecordStore:
    """
    One logical collection of one record type across several stores.

    Attributes:
        record_type: Record type served by this facade
        record_class: Canonical record class for record_type
        adapters: Adapters keyed by store tag
        router: Composite id encoder/decoder
        merge_engine: Dedup/filter/sort engine
        primary_tag: Store that receives new records
        adapter_timeout: Per-adapter read timeout in seconds
    """

    def __init__(
        self,
        record_type: RecordType,
        adapters: Sequence[StoreAdapter],
        router: IdentityRouter,
        merge_engine: MergeEngine,
        primary_tag: str,
        adapter_timeout: float = DEFAULT_ADAPTER_TIMEOUT,
    ):
        self.record_type = RecordType(record_type)
        self.record_class = record_class_for(self.record_type)
        self.router = router
        self.merge_engine = merge_engine
        self.primary_tag = primary_tag
        self.adapter_timeout = adapter_timeout

        self.adapters: Dict[str, StoreAdapter] = {}
        for adapter in adapters:
            if adapter.tag in self.adapters:
                raise ValueError(f"Duplicate adapter for store '{adapter.tag}' ({self.record_type.value})")
            if adapter.record_type != self.record_type:
                raise ValueError(
                    f"Adapter {adapter!r} serves {adapter.record_type.value}, "
                    f"expected {self.record_type.value}"
                )
            self.adapters[adapter.tag] = adapter

        if primary_tag not in self.adapters:
            raise ValueError(f"No adapter for primary store '{primary_tag}' ({self.record_type.value})")

        log.info(
            f"FederatedRecordStore initialized - {self.record_type.value}",
            stores=list(self.adapters),
            primary=primary_tag,
        )

    def __repr__(self) -> str:
        return f"<FederatedRecordStore({self.record_type.value}, stores={list(self.adapters)})>"

    @property
    def primary(self) -> StoreAdapter:
        return self.adapters[self.primary_tag]

    def _adapter_for(self, tag: str) -> StoreAdapter:
        adapter = self.adapters.get(tag)
        if adapter is None:
            raise UnknownStoreTag(tag, self.record_type.value)
        return adapter

    def _validate_filter(self, record_filter: Optional[RecordFilter]) -> None:
        if record_filter is None:
            return
        known = set(self.record_class.field_names())
        unknown = [name for name in record_filter.equals if name not in known]
        if unknown:
            raise ValueError(f"Unknown filter field(s) for {self.record_type.value}: {unknown}")
        if record_filter.sort_by and record_filter.sort_by not in known:
            raise ValueError(f"Unknown sort field for {self.record_type.value}: {record_filter.sort_by}")
        # invalid bounds raise here, before fan-out
        date_bound(record_filter.start_date)
        date_bound(record_filter.end_date, end=True)

    def _with_composite_id(self, record: CanonicalRecord) -> CanonicalRecord:
        return replace(record, id=self.router.encode(record.origin, record.id))

    # =========================================================================
    # Reads
    # =========================================================================

    async def _fetch(
        self,
        adapter: StoreAdapter,
        record_filter: Optional[RecordFilter],
    ) -> Optional[List[CanonicalRecord]]:
        """Read one adapter; None means the store did not answer."""
        try:
            return await asyncio.wait_for(
                adapter.list(record_filter),
                timeout=self.adapter_timeout,
            )
        except asyncio.TimeoutError:
            log.warning(
                f"Store {adapter.tag} timed out after {self.adapter_timeout}s",
                record_type=self.record_type.value,
            )
        except AdapterUnavailable as e:
            log.warning(f"Store {adapter.tag} unavailable: {e}", record_type=self.record_type.value)
        except Exception as e:
            log.error(f"Store {adapter.tag} read failed: {e}", record_type=self.record_type.value)
        return None

    async def list_records(self, record_filter: Optional[RecordFilter] = None) -> List[CanonicalRecord]:
        """
        Merged view across every store.

        Args:
            record_filter: Optional filter, sort and limit

        Returns:
            Deduplicated records carrying composite ids, newest first unless
            the filter asks otherwise

        Raises:
            ValueError: If the filter names an unknown field
            AdapterUnavailable: If no store answered
        """
        self._validate_filter(record_filter)

        adapters = list(self.adapters.values())
        results = await asyncio.gather(*(self._fetch(a, record_filter) for a in adapters))

        answered = [r for r in results if r is not None]
        if not answered:
            tags = ",".join(a.tag for a in adapters)
            raise AdapterUnavailable(tags, f"no store answered for {self.record_type.value}")

        failed = [a.tag for a, r in zip(adapters, results) if r is None]
        per_adapter = [[self._with_composite_id(record) for record in result] for result in answered]

        merged = self.merge_engine.merge(
            per_adapter,
            record_filter,
            default_sort=self.record_class.TIME_FIELD,
        )

        log.debug(
            f"list_records() {self.record_type.value} - "
            f"{sum(len(r) for r in answered)} fetched, {len(merged)} merged",
            failed_stores=failed,
        )
        return merged

    async def get_counts(self, record_filter: Optional[RecordFilter] = None) -> Dict[str, int]:
        """
        Record count per group value (event name or source).

        Counts are taken after deduplication, so a registration present in
        two stores is counted once.
        """
        records = await self.list_records(record_filter)
        counts = Counter(record.group_value() for record in records)
        return dict(sorted(counts.items()))

    async def list_groups(self) -> List[str]:
        """Sorted distinct non-empty group values across all stores."""
        records = await self.list_records()
        group_field = self.record_class.GROUP_FIELD
        return sorted({getattr(r, group_field) for r in records if getattr(r, group_field)})

    async def get_record(self, record_id: str) -> CanonicalRecord:
        """
        Read one record from its origin store.

        Raises:
            UnknownStoreTag: If the id references an unconfigured store
            RecordNotFound: If the origin store has no such document
        """
        tag, native_id = self.router.decode(record_id)
        record = await self._adapter_for(tag).get(native_id)
        return self._with_composite_id(record)

    async def export_csv(self, record_filter: Optional[RecordFilter] = None) -> str:
        """CSV export of the merged view (fixed columns, header always present)."""
        records = await self.list_records(record_filter)
        return records_to_csv(self.record_type, records)

    # =========================================================================
    # Writes
    # =========================================================================

    async def add_record(self, record: CanonicalRecord) -> str:
        """
        Create a record in the primary store.

        A blank time field is filled with the current time. For record types
        with idempotent create, an existing primary-store record with the same
        business key is returned instead of writing a duplicate.

        Returns:
            Composite id of the new (or existing) record
        """
        if not isinstance(record, self.record_class):
            raise TypeError(
                f"Expected {self.record_class.__name__}, got {type(record).__name__}"
            )

        changes: Dict[str, Any] = self.record_class.normalize_fields({"email": record.email})
        time_field = self.record_class.TIME_FIELD
        if not getattr(record, time_field):
            changes[time_field] = now_iso()
        record = replace(record, origin=self.primary_tag, **changes)

        if self.record_class.IDEMPOTENT_CREATE and record.email:
            existing_id = await self.primary.find_existing(record)
            if existing_id:
                log.info(
                    f"add_record() {self.record_type.value} - already present, returning existing id",
                    native_id=existing_id,
                )
                return self.router.encode(self.primary_tag, existing_id)

        native_id = await self.primary.create(record)
        return self.router.encode(self.primary_tag, native_id)

    async def update_record(self, record_id: str, fields: Dict[str, Any]) -> bool:
        """
        Update fields of one record in its origin store.

        Raises:
            ValueError: If fields is empty or names a non-updatable field
            UnknownStoreTag: If the id references an unconfigured store
            RecordNotFound: If the origin store has no such document
        """
        if not fields:
            raise ValueError("update_record() requires at least one field")
        rejected = sorted(set(fields) - self.record_class.UPDATABLE_FIELDS)
        if rejected:
            raise ValueError(f"Field(s) not updatable for {self.record_type.value}: {rejected}")

        tag, native_id = self.router.decode(record_id)
        adapter = self._adapter_for(tag)
        await adapter.update(native_id, self.record_class.normalize_fields(fields))
        return True

    async def delete_record(self, record_id: str) -> bool:
        """
        Delete one record from its origin store.

        Copies of the same business key held by other stores are untouched
        and become visible again on the next read.

        Raises:
            UnknownStoreTag: If the id references an unconfigured store
            RecordNotFound: If the origin store has no such document
        """
        tag, native_id = self.router.decode(record_id)
        await self._adapter_for(tag).delete(native_id)
        return True
