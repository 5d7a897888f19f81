"""
Store Adapter
=============

One adapter binds one record type to one backing store collection.

The adapter:
- pushes down the filter dimensions its store can evaluate natively
- maps native documents to canonical records through a pure mapper
- tags every record with its store of origin
- translates canonical field names to native ones for writes

It only ever sees native ids. Composite ids and routing belong to the
federated facade.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional

import structlog

from fedstore.models import CanonicalRecord, RecordFilter, RecordType
from fedstore.storage.errors import RecordNotFound, SchemaMappingError

log = structlog.get_logger()

Mapper = Callable[[str, Dict[str, Any]], CanonicalRecord]


def first_value(data: Dict[str, Any], *keys: str, default: Any = "") -> Any:
    """Return the first truthy value among several native field spellings."""
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return default


def require(data: Dict[str, Any], doc_id: str, *keys: str) -> Any:
    """
    Like first_value(), but a missing value is a schema error.

    Raises:
        SchemaMappingError: If none of the keys holds a value
    """
    value = first_value(data, *keys, default=None)
    if value is None:
        raise SchemaMappingError(doc_id, keys[0])
    return value


@dataclass
class AdapterProfile:
    """
    Static description of how one (store, record type) pair is shaped.

    Attributes:
        name: Profile name referenced from the federation config
        record_type: Record type the mapper produces
        mapper: Pure function (doc_id, native data) -> canonical record
        field_map: Canonical -> native field names the store accepts for
                   writes and native filters
        pushdown_fields: Canonical fields evaluated natively with "==". Date
                         ranges are never pushed down: native time fields
                         mix encodings, so ranges apply after normalization
        fixed_values: Canonical values the mapper forces on every record;
                      a filter asking for something else cannot match here
    """
    name: str
    record_type: RecordType
    mapper: Mapper
    field_map: Dict[str, str] = field(default_factory=dict)
    pushdown_fields: FrozenSet[str] = frozenset()
    fixed_values: Dict[str, Any] = field(default_factory=dict)


class StoreAdapter:
    """
    Adapter for one record type in one backing store.

    Example:
        adapter = StoreAdapter("techday", techday_client, "registrations", TECHDAY_REGISTRATION)
        records = await adapter.list(RecordFilter(equals={"event": "SATechDay2026"}))
    """

    def __init__(self, tag: str, client: Any, collection: str, profile: AdapterProfile):
        """
        Args:
            tag: Store tag (origin tag stamped on every record)
            client: Document client for the backing store (shared per store)
            collection: Native collection name
            profile: Mapping/push-down description
        """
        self.tag = tag
        self.client = client
        self.collection = collection
        self.profile = profile

    def __repr__(self) -> str:
        return f"<StoreAdapter({self.tag}/{self.collection}, profile={self.profile.name})>"

    @property
    def record_type(self) -> RecordType:
        return self.profile.record_type

    def native_filters(self, record_filter: Optional[RecordFilter]) -> Optional[List[tuple]]:
        """
        Translate the push-down-able part of a filter into native clauses.

        Returns:
            List of (native_field, op, value) clauses, or None when the filter
            can never match a record of this store
        """
        where: List[tuple] = []
        if record_filter is None:
            return where

        for name, value in record_filter.equals.items():
            fixed = self.profile.fixed_values.get(name)
            if fixed is not None and fixed != value:
                return None
            if name in self.profile.pushdown_fields and name in self.profile.field_map:
                where.append((self.profile.field_map[name], "==", value))

        return where

    def map_document(self, doc_id: str, data: Dict[str, Any]) -> CanonicalRecord:
        """Map one native document and stamp it with this store's tag."""
        try:
            record = self.profile.mapper(doc_id, data)
        except SchemaMappingError as e:
            e.tag = self.tag
            raise
        record.origin = self.tag
        return record

    async def list(self, record_filter: Optional[RecordFilter] = None) -> List[CanonicalRecord]:
        """
        Read every record of this store matching the push-down-able filter.

        Malformed documents are dropped with a warning; the remaining filter
        dimensions are applied by the caller after merge.
        """
        where = self.native_filters(record_filter)
        if where is None:
            log.debug(f"Skipping {self.tag}/{self.collection}: filter cannot match this store")
            return []

        documents = await self.client.query(self.collection, where)

        records = []
        for doc_id, data in documents:
            try:
                records.append(self.map_document(doc_id, data))
            except (SchemaMappingError, ValueError, TypeError) as e:
                log.warning(
                    "Dropping malformed document",
                    store=self.tag,
                    doc_id=doc_id,
                    error=str(e),
                )

        log.debug(
            f"list() {self.tag}/{self.collection} - "
            f"pushed_down={len(where)}, returned {len(records)} records"
        )
        return records

    async def get(self, native_id: str) -> CanonicalRecord:
        """
        Raises:
            RecordNotFound: If no document has this native id
        """
        data = await self.client.get(self.collection, native_id)
        if data is None:
            raise RecordNotFound(self.tag, native_id)
        return self.map_document(native_id, data)

    def to_native(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Translate canonical field names into this store's native names.

        Raises:
            ValueError: If a field has no native counterpart in this store
        """
        native = {}
        for name, value in fields.items():
            if name not in self.profile.field_map:
                raise ValueError(f"Field '{name}' cannot be written to store '{self.tag}'")
            native[self.profile.field_map[name]] = value
        return native

    async def create(self, record: CanonicalRecord) -> str:
        """Write a new native document and return its native id."""
        data = {
            native: getattr(record, name)
            for name, native in self.profile.field_map.items()
        }
        native_id = await self.client.add(self.collection, data)
        log.info(f"Created record in {self.tag}/{self.collection}", native_id=native_id)
        return native_id

    async def find_existing(self, record: CanonicalRecord) -> Optional[str]:
        """
        Native id of a document with the same business key, if any.

        Only the business key fields this store can filter on are used.
        """
        fields = {"email": record.email, **record.scope_values()}
        where = [
            (self.profile.field_map[name], "==", value)
            for name, value in fields.items()
            if name in self.profile.field_map
        ]
        documents = await self.client.query(self.collection, where, limit=1)
        return documents[0][0] if documents else None

    async def update(self, native_id: str, fields: Dict[str, Any]) -> None:
        """
        Raises:
            ValueError: If a field cannot be written to this store
            RecordNotFound: If no document has this native id
        """
        native = self.to_native(fields)
        await self.client.update(self.collection, native_id, native)
        log.info(
            f"Updated record in {self.tag}/{self.collection}",
            native_id=native_id,
            fields=sorted(native.keys()),
        )

    async def delete(self, native_id: str) -> None:
        """
        Raises:
            RecordNotFound: If no document has this native id
        """
        await self.client.delete(self.collection, native_id)
        log.info(f"Deleted record from {self.tag}/{self.collection}", native_id=native_id)
