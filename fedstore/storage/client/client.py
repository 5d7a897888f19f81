"""
Firestore Client
================

Async client for one Firestore backing store.

The google-cloud-firestore SDK is synchronous; every call runs in the
default thread pool executor so that adapters for different stores can
query in parallel from one event loop.

One FirestoreClient exists per backing store. It is created by the
federation builder and injected into every adapter that reads the store;
the underlying SDK handle is opened lazily on first use and reused for the
lifetime of the process.
"""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from fedstore.storage.client.config import FirestoreConfig
from fedstore.storage.errors import AdapterUnavailable, RecordNotFound

log = structlog.get_logger()

# (field, operator, value) triples, e.g. ("source", "==", "AIM")
WhereClause = Tuple[str, str, Any]
Document = Tuple[str, Dict[str, Any]]


class FirestoreClient:
    """
    Async client for a single Firestore database.

    Example:
        client = FirestoreClient("techday", FirestoreConfig(database_id="techday"))

        docs = await client.query("registrations", [("checkedIn", "==", True)])
        for doc_id, data in docs:
            print(doc_id, data["email"])

        await client.close()
    """

    def __init__(self, tag: str, config: Optional[FirestoreConfig] = None):
        self.tag = tag
        self.config = config or FirestoreConfig()
        self._db: Optional[firestore.Client] = None
        self._connect_lock = asyncio.Lock()

        log.info(
            f"FirestoreClient initialized - "
            f"store={tag}, database={self.config.database_id}"
        )

    @property
    def connected(self) -> bool:
        return self._db is not None

    async def connect(self):
        """Open the SDK handle (no-op when already open)."""
        async with self._connect_lock:
            if self._db is not None:
                return

            loop = asyncio.get_event_loop()
            try:
                await loop.run_in_executor(None, self._connect_sync)
            except (ValueError, auth_exceptions.GoogleAuthError) as e:
                log.error(f"Cannot connect to store {self.tag}: {e}")
                raise AdapterUnavailable(self.tag, str(e)) from e

            log.info(f"Connected to Firestore store {self.tag}", database=self.config.database_id)

    def _connect_sync(self):
        """Synchronous connection (called in executor)."""
        info = self.config.service_account_info()
        credentials = service_account.Credentials.from_service_account_info(info)
        self._db = firestore.Client(
            project=self.config.project_id or info.get("project_id"),
            credentials=credentials,
            database=self.config.database_id,
        )

    async def close(self):
        """Release the SDK handle."""
        if self._db is None:
            return
        db, self._db = self._db, None
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, db.close)
        log.info(f"Disconnected from Firestore store {self.tag}")

    async def _call(self, fn: Callable, *args) -> Any:
        """Run a synchronous SDK operation in the executor, translating errors."""
        if self._db is None:
            await self.connect()

        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, *args))
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            log.error(f"Store {self.tag} call failed: {e}")
            raise AdapterUnavailable(self.tag, str(e)) from e

    async def query(
        self,
        collection: str,
        where: Optional[Sequence[WhereClause]] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        """
        Run a query against one collection.

        Args:
            collection: Native collection name
            where: Filter clauses the store evaluates natively
            limit: Maximum number of documents

        Returns:
            List of (document id, document data) pairs
        """
        return await self._call(self._query_sync, collection, list(where or []), limit)

    def _query_sync(
        self,
        collection: str,
        where: List[WhereClause],
        limit: Optional[int],
    ) -> List[Document]:
        query = self._db.collection(collection)
        for field_path, op, value in where:
            query = query.where(filter=FieldFilter(field_path, op, value))
        if limit:
            query = query.limit(limit)

        documents = [
            (snapshot.id, snapshot.to_dict() or {})
            for snapshot in query.stream(timeout=self.config.timeout_seconds)
        ]
        log.debug(
            f"Query executed on {self.tag}/{collection} "
            f"(filters={[w[0] for w in where]}) -> {len(documents)} documents"
        )
        return documents

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document; None when it does not exist."""
        return await self._call(self._get_sync, collection, doc_id)

    def _get_sync(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snapshot = self._db.collection(collection).document(doc_id).get(
            timeout=self.config.timeout_seconds
        )
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return that id."""
        return await self._call(self._add_sync, collection, data)

    def _add_sync(self, collection: str, data: Dict[str, Any]) -> str:
        _, doc_ref = self._db.collection(collection).add(
            data, timeout=self.config.timeout_seconds
        )
        return doc_ref.id

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Update fields on an existing document.

        Raises:
            RecordNotFound: If the document does not exist
        """
        await self._call(self._update_sync, collection, doc_id, fields)

    def _update_sync(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            self._db.collection(collection).document(doc_id).update(
                fields, timeout=self.config.timeout_seconds
            )
        except google_exceptions.NotFound as e:
            raise RecordNotFound(self.tag, doc_id) from e

    async def delete(self, collection: str, doc_id: str) -> None:
        """
        Delete an existing document.

        Firestore deletes are silent for missing documents, so existence is
        checked first.

        Raises:
            RecordNotFound: If the document does not exist
        """
        await self._call(self._delete_sync, collection, doc_id)

    def _delete_sync(self, collection: str, doc_id: str) -> None:
        doc_ref = self._db.collection(collection).document(doc_id)
        if not doc_ref.get(timeout=self.config.timeout_seconds).exists:
            raise RecordNotFound(self.tag, doc_id)
        doc_ref.delete(timeout=self.config.timeout_seconds)

    async def health_check(self) -> bool:
        """
        Check that the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self._call(self._ping_sync)
            return True
        except AdapterUnavailable as e:
            log.error(f"Health check failed for store {self.tag}: {e}")
            return False

    def _ping_sync(self) -> None:
        for _ in self._db.collections(timeout=self.config.timeout_seconds):
            break
