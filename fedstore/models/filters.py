"""
Record Filters
==============

Caller-facing filter for federated reads.

Adapters push down what their store can express; the merge step
re-applies the whole filter client-side, so every dimension is honored
regardless of which store a record came from.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RecordFilter:
    """
    Filter, sort and limit for list_records().

    Attributes:
        equals: Canonical field -> exact value (e.g. {"event": "SATechDay2026"})
        start_date: Inclusive lower bound (ISO-8601 date or datetime)
        end_date: Inclusive upper bound; a date-only value covers the whole day
        search: Case-insensitive substring over the type's search fields
        sort_by: Canonical field to sort on (default: the type's time field)
        descending: Sort direction (default: newest first)
        limit: Maximum number of records after sorting

    Example:
        >>> RecordFilter(equals={"source": "AIM"}, start_date="2025-01-01", limit=50)
    """
    equals: Dict[str, Any] = field(default_factory=dict)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search: Optional[str] = None
    sort_by: Optional[str] = None
    descending: bool = True
    limit: Optional[int] = None

    def __post_init__(self):
        """Validate filter values."""
        if self.limit is not None and self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")
        if self.search is not None:
            self.search = self.search.strip() or None

    @classmethod
    def for_scope(cls, field_name: str, value: Optional[str], **kwargs) -> "RecordFilter":
        """Filter on a single scope field, ignoring an empty value."""
        equals = {field_name: value} if value else {}
        return cls(equals=equals, **kwargs)

    @property
    def has_date_range(self) -> bool:
        return bool(self.start_date or self.end_date)
