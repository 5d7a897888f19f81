"""
Identity Router
===============

Composite identifiers that tell the facade which store owns a record.

    "<tag>:<native_id>"   record lives in the store registered under <tag>
    "<native_id>"         record lives in the primary store

Primary-store ids stay bare so that pre-existing ids (and links built on
them) keep working. Tags come from a small reserved vocabulary, so a native
id that happens to contain a colon is still routed to the primary store
unless its prefix is one of those reserved tags.
"""

from typing import Iterable, NamedTuple, Optional

from fedstore.storage.errors import UnknownStoreTag

SEPARATOR = ":"


class CompositeId(NamedTuple):
    """Decoded composite identifier."""
    tag: str
    native_id: str

    def __str__(self) -> str:
        return f"{self.tag}{SEPARATOR}{self.native_id}"


class IdentityRouter:
    """
    Encodes and decodes composite ids for one record type.

    Attributes:
        primary_tag: Tag of the primary store (bare ids)
        configured_tags: Tags with an adapter for this record type
        reserved_tags: Every tag of the federation; a reserved prefix without
                       an adapter is an error rather than a primary-store id

    Example:
        >>> router = IdentityRouter("default", ["default", "techday"], reserved_tags=["aimsatx"])
        >>> router.encode("techday", "abc")
        'techday:abc'
        >>> router.decode("abc")
        CompositeId(tag='default', native_id='abc')
    """

    def __init__(
        self,
        primary_tag: str,
        configured_tags: Iterable[str],
        reserved_tags: Optional[Iterable[str]] = None,
        record_type: Optional[str] = None,
    ):
        self.primary_tag = primary_tag
        self.configured_tags = frozenset(configured_tags)
        self.reserved_tags = frozenset(reserved_tags or ()) | self.configured_tags
        self.record_type = record_type

        if primary_tag not in self.configured_tags:
            raise ValueError(f"primary tag '{primary_tag}' must be a configured tag")
        for tag in self.reserved_tags:
            if not tag or SEPARATOR in tag:
                raise ValueError(f"invalid store tag: {tag!r}")

    def encode(self, tag: str, native_id: str) -> str:
        """
        Build the caller-facing id for a record.

        Raises:
            UnknownStoreTag: If the tag has no adapter for this record type
        """
        if tag not in self.configured_tags:
            raise UnknownStoreTag(tag, self.record_type)
        if tag == self.primary_tag:
            return native_id
        return str(CompositeId(tag, native_id))

    def decode(self, composite_id: str) -> CompositeId:
        """
        Resolve a caller-facing id to (tag, native id).

        Raises:
            UnknownStoreTag: If the prefix is a reserved tag with no adapter
                             for this record type
        """
        prefix, separator, rest = composite_id.partition(SEPARATOR)
        if not separator or prefix not in self.reserved_tags:
            return CompositeId(self.primary_tag, composite_id)
        if prefix not in self.configured_tags:
            raise UnknownStoreTag(prefix, self.record_type)
        return CompositeId(prefix, rest)
