"""
Live schedule list for the owner's app.

The feed subscribes to the store and republishes every snapshot as a list
of Schedules to registered listeners. It is a read-through cache: local
optimistic edits are allowed, but the next store snapshot always wins. A
subscription error is passed to alert handlers and the last good list is
kept rather than cleared.
"""

import logging
from typing import Callable, Optional

from pydantic import ValidationError

from metime.schemas.schedule_schema import Schedule
from metime.store.document_store import DocumentStore

logger = logging.getLogger(__name__)

ScheduleListener = Callable[[list[Schedule]], None]
AlertHandler = Callable[[str], None]

LOAD_ERROR_MESSAGE = "Could not load schedules. Showing the last known schedule list."


class ScheduleFeed:
    """Keeps an up-to-date, date-ordered list of schedules."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._schedules: list[Schedule] = []
        self._listeners: list[ScheduleListener] = []
        self._alert_handlers: list[AlertHandler] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.last_error: Optional[Exception] = None

    @property
    def schedules(self) -> list[Schedule]:
        return list(self._schedules)

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_snapshot, self._on_error)
            logger.debug("Schedule feed started")

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.debug("Schedule feed stopped")

    def add_listener(self, listener: ScheduleListener) -> None:
        self._listeners.append(listener)

    def add_alert_handler(self, handler: AlertHandler) -> None:
        self._alert_handlers.append(handler)

    def find(self, token: str) -> Optional[Schedule]:
        for schedule in self._schedules:
            if schedule.link_token == token:
                return schedule
        return None

    def apply_local(self, schedule: Schedule) -> None:
        """Optimistically add or replace one schedule until the store confirms it."""
        others = [s for s in self._schedules if s.link_token != schedule.link_token]
        if len(others) == len(self._schedules):
            logger.debug("Adding local schedule %s ahead of the store", schedule.link_token)
        self._schedules = sorted(others + [schedule], key=lambda s: s.date)
        self._publish()

    def _on_snapshot(self, documents: list[dict]) -> None:
        try:
            schedules = [Schedule.from_document(doc) for doc in documents]
        except ValidationError as exc:
            self._on_error(exc)
            return
        self._schedules = sorted(schedules, key=lambda s: s.date)
        self.last_error = None
        self._publish()

    def _on_error(self, exc: Exception) -> None:
        logger.error("Error loading schedules: %s", exc)
        self.last_error = exc
        for handler in self._alert_handlers:
            handler(LOAD_ERROR_MESSAGE)

    def _publish(self) -> None:
        snapshot = self.schedules
        for listener in self._listeners:
            listener(snapshot)
