"""
fedstore Test Configuration
===========================

Shared fixtures for all tests.

FakeDocumentClient is an in-memory stand-in for FirestoreClient with the
same async surface (query/get/add/update/delete/health_check/close), a call
log, and knobs to simulate slow or unreachable stores. Where clauses only
match stored values of the same type as the clause value.
"""

import asyncio
import itertools
import operator
from typing import Any, Dict, List, Optional

import pytest

from fedstore.config import load_federation_config
from fedstore.storage.errors import AdapterUnavailable, RecordNotFound
from fedstore.storage.registry import build_federation

_OPS = {
    "==": operator.eq,
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
}


def _type_family(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def _matches(data: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    # Firestore only compares values of the same type; others never match
    if field not in data or _type_family(data[field]) != _type_family(value):
        return False
    return _OPS[op](data[field], value)


class FakeDocumentClient:
    """
    In-memory document store.

    Attributes:
        tag: Store tag
        collections: collection -> {doc_id: data}
        calls: Log of (method, collection, ...) tuples
        delay: Seconds every read waits before answering
        fail: If True, every call raises AdapterUnavailable
    """

    _ids = itertools.count(1)

    def __init__(self, tag: str, collections: Optional[Dict[str, Dict[str, dict]]] = None):
        self.tag = tag
        self.collections: Dict[str, Dict[str, dict]] = {
            name: dict(docs) for name, docs in (collections or {}).items()
        }
        self.calls: List[tuple] = []
        self.delay = 0.0
        self.fail = False
        self.closed = False

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc_id] = dict(data)

    def _check(self):
        if self.fail:
            raise AdapterUnavailable(self.tag, "simulated outage")

    async def query(self, collection: str, where=None, limit=None):
        self.calls.append(("query", collection, list(where or []), limit))
        if self.delay:
            await asyncio.sleep(self.delay)
        self._check()

        documents = []
        for doc_id, data in self.collections.get(collection, {}).items():
            if all(_matches(data, field, op, value) for field, op, value in (where or [])):
                documents.append((doc_id, dict(data)))
        return documents[:limit] if limit else documents

    async def get(self, collection: str, doc_id: str):
        self.calls.append(("get", collection, doc_id))
        self._check()
        data = self.collections.get(collection, {}).get(doc_id)
        return dict(data) if data is not None else None

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        self.calls.append(("add", collection, dict(data)))
        self._check()
        doc_id = f"{self.tag}-doc{next(self._ids)}"
        self.seed(collection, doc_id, data)
        return doc_id

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self.calls.append(("update", collection, doc_id, dict(fields)))
        self._check()
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            raise RecordNotFound(self.tag, doc_id)
        docs[doc_id].update(fields)

    async def delete(self, collection: str, doc_id: str) -> None:
        self.calls.append(("delete", collection, doc_id))
        self._check()
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            raise RecordNotFound(self.tag, doc_id)
        del docs[doc_id]

    async def health_check(self) -> bool:
        return not self.fail

    async def close(self):
        self.closed = True

    def mutations(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("add", "update", "delete")]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of config loading."""
    monkeypatch.delenv("FEDSTORE_CONFIG", raising=False)
    monkeypatch.delenv("FEDSTORE_ADAPTER_TIMEOUT", raising=False)


@pytest.fixture
def make_client():
    """Factory for standalone fake clients."""
    return FakeDocumentClient


@pytest.fixture
def fake_clients():
    """One fake client per store of the bundled federation layout."""
    return {tag: FakeDocumentClient(tag) for tag in ("default", "techday", "dc", "aimsatx")}


@pytest.fixture
def federation_config():
    """Bundled federation layout."""
    return load_federation_config()


@pytest.fixture
def federation(federation_config, fake_clients):
    """Full federation wired to in-memory stores."""
    return build_federation(federation_config, clients=fake_clients)


@pytest.fixture
def sample_registration_docs():
    """Native registration documents as each store writes them."""
    return {
        "default": {
            "reg1": {
                "email": "a@x.com",
                "firstName": "Ada",
                "lastName": "Lovelace",
                "company": "Acme",
                "event": "SATechDay2026",
                "eventName": "SA Tech Day 2026",
                "registeredAt": "2026-03-01T10:00:00Z",
                "source": "walk-up",
            },
            "reg2": {
                "email": "grace@navy.mil",
                "first_name": "Grace",
                "last_name": "Hopper",
                "event": "AIMSummit2025",
                "event_name": "AIM Summit",
                "created_at": {"_seconds": 1735732800, "_nanoseconds": 0},
            },
        },
        "techday": {
            "td1": {
                "email": "A@X.com ",
                "firstName": "Ada",
                "lastName": "Lovelace",
                "company": "",
                "createdAt": "2026-02-20T09:30:00.000Z",
                "events": ["keynote"],
            },
            "td2": {
                "email": "linus@kernel.org",
                "firstName": "Linus",
                "lastName": "Torvalds",
                "createdAt": "2026-02-21T12:00:00.000Z",
                "checkedIn": True,
            },
        },
        "dc": {
            "dc1": {
                "email": "alan@bletchley.uk",
                "firstName": "Alan",
                "lastName": "Turing",
                "registeredAt": 1767225600000,
            },
        },
    }


@pytest.fixture
def seeded_federation(federation, fake_clients, sample_registration_docs):
    """Federation whose registration collections hold sample documents."""
    collections = {
        "default": "event_registrations",
        "techday": "registrations",
        "dc": "event-registrations",
    }
    for tag, docs in sample_registration_docs.items():
        for doc_id, data in docs.items():
            fake_clients[tag].seed(collections[tag], doc_id, data)
    return federation
