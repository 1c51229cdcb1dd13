"""
Keyed document store contract plus an in-memory implementation.

In production the schedules live in a hosted document database; the
booking code only needs get, set, a serialised read-modify-write
transaction on one document, an append-only log collection and a live
snapshot subscription. ``InMemoryDocumentStore`` provides exactly that for
tests and the console demo.
"""

import asyncio
import copy
import inspect
import itertools
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

SnapshotListener = Callable[[list[dict]], None]
ErrorListener = Callable[[Exception], None]
ChangeListener = Callable[[str, Optional[dict], dict], Union[None, Awaitable[None]]]
TransactionFn = Callable[[Optional[dict]], tuple[Optional[dict], T]]


class StoreError(Exception):
    """Raised when the store cannot complete a read or write."""

    def __init__(self, message: str, *, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class DocumentStore(ABC):
    """What the booking code needs from the schedules collection."""

    @abstractmethod
    async def get(self, key: str) -> Optional[dict]:
        """Return a copy of the document, or None if it doesn't exist."""

    @abstractmethod
    async def set(self, key: str, document: dict) -> None:
        """Create or replace a whole document."""

    @abstractmethod
    async def transaction(self, key: str, update: TransactionFn[T]) -> T:
        """
        Run ``update`` against the current document, serialised per key.

        ``update`` receives a copy of the document (or None) and returns
        ``(new_document, result)``. A None new document means nothing is
        written. The result is passed back to the caller.
        """

    @abstractmethod
    async def add(self, collection: str, record: dict) -> str:
        """Append a record to a log collection and return its id."""

    @abstractmethod
    def subscribe(
        self, on_snapshot: SnapshotListener, on_error: Optional[ErrorListener] = None
    ) -> Callable[[], None]:
        """Listen for snapshots of every document, ordered by ``date``."""

    @abstractmethod
    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Listen for (key, before, after) on every document write."""


class InMemoryDocumentStore(DocumentStore):
    """Process-local store with per-document locks."""

    def __init__(self, latency: float = 0.0) -> None:
        self._latency = latency
        self._documents: dict[str, dict] = {}
        self._collections: defaultdict[str, list[dict]] = defaultdict(list)
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._listeners: list[tuple[SnapshotListener, Optional[ErrorListener]]] = []
        self._change_listeners: list[ChangeListener] = []
        self._pending_failure: Optional[Exception] = None
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------ #
    # Fault injection
    # ------------------------------------------------------------------ #

    def fail_next(self, exc: Exception) -> None:
        """Make the next get/set/transaction raise StoreError wrapping ``exc``."""
        self._pending_failure = exc

    def broadcast_error(self, exc: Exception) -> None:
        """Deliver a subscription error to every snapshot listener."""
        for _, on_error in list(self._listeners):
            if on_error is not None:
                on_error(exc)

    async def _round_trip(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)
        if self._pending_failure is not None:
            exc, self._pending_failure = self._pending_failure, None
            raise StoreError("Document store unavailable", cause=exc)

    # ------------------------------------------------------------------ #
    # DocumentStore
    # ------------------------------------------------------------------ #

    async def get(self, key: str) -> Optional[dict]:
        await self._round_trip()
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, key: str, document: dict) -> None:
        async with self._locks[key]:
            await self._round_trip()
            before = self._documents.get(key)
            self._documents[key] = copy.deepcopy(document)
        await self._publish(key, before)

    async def transaction(self, key: str, update: TransactionFn[T]) -> T:
        async with self._locks[key]:
            await self._round_trip()
            before = self._documents.get(key)
            new_document, result = update(copy.deepcopy(before) if before is not None else None)
            if new_document is None:
                return result
            self._documents[key] = copy.deepcopy(new_document)
        await self._publish(key, before)
        return result

    async def add(self, collection: str, record: dict) -> str:
        record_id = f"{collection}-{next(self._ids):05d}"
        self._collections[collection].append({"id": record_id, **copy.deepcopy(record)})
        return record_id

    def records(self, collection: str) -> list[dict]:
        return copy.deepcopy(self._collections.get(collection, []))

    def subscribe(
        self, on_snapshot: SnapshotListener, on_error: Optional[ErrorListener] = None
    ) -> Callable[[], None]:
        entry = (on_snapshot, on_error)
        self._listeners.append(entry)
        on_snapshot(self.snapshot())

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        self._change_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._change_listeners:
                self._change_listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> list[dict]:
        """All documents, ordered by date ascending."""
        documents = [copy.deepcopy(doc) for doc in self._documents.values()]
        return sorted(documents, key=lambda doc: doc.get("date"))

    def reset(self) -> None:
        """Drop all documents, logs and listeners. Used by test fixtures."""
        self._documents.clear()
        self._collections.clear()
        self._listeners.clear()
        self._change_listeners.clear()
        self._pending_failure = None

    async def _publish(self, key: str, before: Optional[dict]) -> None:
        after = copy.deepcopy(self._documents[key])
        snapshot = self.snapshot()
        for on_snapshot, _ in list(self._listeners):
            on_snapshot(snapshot)
        for listener in list(self._change_listeners):
            try:
                outcome: Any = listener(key, copy.deepcopy(before), after)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception("Change listener failed for document %s", key)
