from metime.store.document_store import DocumentStore, InMemoryDocumentStore, StoreError
from metime.store.feed import ScheduleFeed
from metime.store.schedule_repository import ScheduleRepository

__all__ = [
    "DocumentStore", "InMemoryDocumentStore", "StoreError",
    "ScheduleFeed", "ScheduleRepository",
]
