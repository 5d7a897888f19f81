"""
Merge Engine
============

Deterministic merge of per-store result sets into one ordered list.

Algorithm:
1. Flatten all adapter results, keeping each record's origin tag
2. Compute each record's business key (None = no email = always unique)
3. Walk records in store priority order (stable within a store) and keep
   the first record per business key
4. Apply the full filter client-side (stores only evaluate part of it)
5. Sort on the requested field (default: time field, newest first), then
   apply the limit

Because step 3 orders by priority rather than arrival, the result does not
depend on which store answered first.
"""

from dataclasses import fields as dataclass_fields
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from fedstore.models import CanonicalRecord, RecordFilter
from fedstore.storage.adapters.timestamps import date_bound

log = structlog.get_logger()

# Never compared when looking for conflicting duplicates
_TRANSIENT_FIELDS = frozenset({"id", "origin"})


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def conflicting_fields(kept: CanonicalRecord, dropped: CanonicalRecord) -> List[str]:
    """Names of non-transient fields on which two duplicates disagree."""
    return [
        f.name
        for f in dataclass_fields(kept)
        if f.name not in _TRANSIENT_FIELDS
        and getattr(kept, f.name) != getattr(dropped, f.name, None)
    ]


def matches(record: CanonicalRecord, record_filter: RecordFilter, bounds: Tuple[str, str]) -> bool:
    """Evaluate a filter against one record."""
    for name, value in record_filter.equals.items():
        if getattr(record, name, None) != value:
            return False

    if record_filter.has_date_range:
        timestamp = getattr(record, record.TIME_FIELD, "")
        if not timestamp:
            return False
        start, end = bounds
        if start and timestamp < start:
            return False
        if end and timestamp > end:
            return False

    if record_filter.search:
        needle = record_filter.search.lower()
        haystack = (str(getattr(record, name, "") or "") for name in record.SEARCH_FIELDS)
        if not any(needle in value.lower() for value in haystack):
            return False

    return True


def apply_filters(
    records: Iterable[CanonicalRecord],
    record_filter: Optional[RecordFilter],
) -> List[CanonicalRecord]:
    """Client-side filtering (equality, date range, free-text search)."""
    records = list(records)
    if record_filter is None:
        return records
    bounds = (
        date_bound(record_filter.start_date),
        date_bound(record_filter.end_date, end=True),
    )
    return [r for r in records if matches(r, record_filter, bounds)]


def sort_records(
    records: List[CanonicalRecord],
    sort_by: str,
    descending: bool = True,
) -> List[CanonicalRecord]:
    """
    Sort on one field; blank values always go last.

    Ties are broken by id so that the order is fully deterministic.
    """
    present = [r for r in records if not _is_blank(getattr(r, sort_by, None))]
    blank = [r for r in records if _is_blank(getattr(r, sort_by, None))]
    present.sort(key=lambda r: (getattr(r, sort_by), r.id), reverse=descending)
    blank.sort(key=lambda r: r.id)
    return present + blank


class MergeEngine:
    """
    Deduplicates and orders federated results.

    Attributes:
        priority_order: Store tags, highest priority first. Tags missing from
                        the list rank below every listed tag.

    Example:
        >>> engine = MergeEngine(["default", "techday", "dc"])
        >>> merged = engine.merge([default_records, techday_records, dc_records])
    """

    def __init__(self, priority_order: Sequence[str]):
        if len(set(priority_order)) != len(priority_order):
            raise ValueError(f"priority_order contains duplicates: {list(priority_order)}")
        self.priority_order = list(priority_order)
        self._rank: Dict[str, int] = {tag: i for i, tag in enumerate(self.priority_order)}

    def rank(self, tag: str) -> int:
        return self._rank.get(tag, len(self._rank))

    def deduplicate(self, per_adapter_results: Sequence[Sequence[CanonicalRecord]]) -> List[CanonicalRecord]:
        """Keep one record per business key, preferring higher-priority stores."""
        flattened = [record for results in per_adapter_results for record in results]
        ordered = sorted(flattened, key=lambda r: self.rank(r.origin))

        kept: Dict[tuple, CanonicalRecord] = {}
        merged: List[CanonicalRecord] = []
        for record in ordered:
            key = record.business_key()
            if key is None:
                merged.append(record)
                continue

            winner = kept.get(key)
            if winner is None:
                kept[key] = record
                merged.append(record)
                continue

            self._log_duplicate(winner, record)

        dropped = len(flattened) - len(merged)
        if dropped:
            log.debug(f"deduplicate() - {len(flattened)} records in, {dropped} duplicates dropped")
        return merged

    def _log_duplicate(self, winner: CanonicalRecord, duplicate: CanonicalRecord) -> None:
        differing = conflicting_fields(winner, duplicate)
        if differing:
            # field names only, values are personal data
            log.info(
                "merge_conflict",
                kept_id=winner.id,
                kept_origin=winner.origin,
                dropped_id=duplicate.id,
                dropped_origin=duplicate.origin,
                fields=differing,
            )
        else:
            log.debug(
                "Duplicate dropped",
                kept_origin=winner.origin,
                dropped_origin=duplicate.origin,
            )

    def merge(
        self,
        per_adapter_results: Sequence[Sequence[CanonicalRecord]],
        record_filter: Optional[RecordFilter] = None,
        default_sort: Optional[str] = None,
    ) -> List[CanonicalRecord]:
        """
        Full merge: dedup, residual filters, sort, limit.

        Args:
            per_adapter_results: One result list per adapter (any order)
            record_filter: Filter, sort and limit requested by the caller
            default_sort: Sort field when the filter names none

        Returns:
            Merged, filtered, ordered records
        """
        merged = apply_filters(self.deduplicate(per_adapter_results), record_filter)

        sort_by = (record_filter.sort_by if record_filter else None) or default_sort
        descending = record_filter.descending if record_filter else True
        if sort_by:
            merged = sort_records(merged, sort_by, descending)

        if record_filter and record_filter.limit:
            merged = merged[:record_filter.limit]
        return merged
