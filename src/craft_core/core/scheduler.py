from __future__ import annotations

import asyncio
import itertools
import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, Hashable

from .config import utcnow
from .types import EventCallback, ScheduledEvent

logger = logging.getLogger(__name__)


class ScheduledEventRegistry:
    """Pending timed callbacks, fired at most once by :meth:`sweep`.

    Due events are detached from the registry while the lock is held and their
    callbacks run after it is released, so a callback may call back into the
    registry (or into another lock-owning service) without deadlocking. An
    event that :meth:`cancel` removed first is never fired.
    """

    def __init__(self, name: str = "events", clock: Callable[[], datetime] | None = None):
        self.name = name
        self._clock = clock or utcnow
        self._lock = threading.Lock()
        self._events: dict[str, ScheduledEvent] = {}
        self._keys: dict[Hashable, str] = {}
        self._seq = itertools.count()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def schedule(
        self,
        delay_seconds: float,
        callback: EventCallback,
        *,
        key: Hashable | None = None,
        scheduled_at: datetime | None = None,
    ) -> ScheduledEvent:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        base = scheduled_at or self._clock()
        with self._lock:
            if key is not None and key in self._keys:
                raise ValueError(f"event already pending for key {key!r}")
            event = ScheduledEvent(
                id=uuid.uuid4().hex,
                fire_at=base + timedelta(seconds=delay_seconds),
                callback=callback,
                key=key,
                seq=next(self._seq),
            )
            self._events[event.id] = event
            if key is not None:
                self._keys[key] = event.id
        logger.debug("%s: scheduled %s key=%r fire_at=%s", self.name, event.id, key, event.fire_at)
        return event

    def cancel(self, event_id: str) -> bool:
        with self._lock:
            event = self._detach(event_id)
        if event is None:
            return False
        event.cancelled = True
        logger.debug("%s: cancelled %s", self.name, event_id)
        return True

    def cancel_key(self, key: Hashable) -> bool:
        with self._lock:
            event_id = self._keys.get(key)
            event = self._detach(event_id) if event_id is not None else None
        if event is None:
            return False
        event.cancelled = True
        return True

    def get(self, event_id: str) -> ScheduledEvent | None:
        with self._lock:
            return self._events.get(event_id)

    def find(self, key: Hashable) -> ScheduledEvent | None:
        with self._lock:
            event_id = self._keys.get(key)
            return self._events.get(event_id) if event_id is not None else None

    def sweep(self, now: datetime | None = None) -> int:
        """Fire and remove every event whose deadline is at or before ``now``.

        Returns the number of callbacks invoked.
        """
        now = now or self._clock()
        with self._lock:
            due = sorted(
                (event for event in self._events.values() if event.is_due(now)),
                key=lambda event: (event.fire_at, event.seq),
            )
            for event in due:
                self._detach(event.id)

        for event in due:
            try:
                event.callback(True)
            except Exception:
                logger.exception("%s: callback for event %s failed", self.name, event.id)
        if due:
            logger.debug("%s: swept %d event(s)", self.name, len(due))
        return len(due)

    def fire_key(self, key: Hashable, now: datetime | None = None) -> bool:
        """Fire the event pending under ``key`` if it is due, leaving all others alone."""
        now = now or self._clock()
        with self._lock:
            event_id = self._keys.get(key)
            event = self._events.get(event_id) if event_id is not None else None
            if event is None or not event.is_due(now):
                return False
            self._detach(event.id)

        try:
            event.callback(True)
        except Exception:
            logger.exception("%s: callback for event %s failed", self.name, event.id)
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._events)
            for event in self._events.values():
                event.cancelled = True
            self._events.clear()
            self._keys.clear()
        return count

    def _detach(self, event_id: str) -> ScheduledEvent | None:
        event = self._events.pop(event_id, None)
        if event is not None and event.key is not None:
            if self._keys.get(event.key) == event.id:
                del self._keys[event.key]
        return event


class PeriodicSweeper:
    """Runs ``registry.sweep`` on a fixed period as an asyncio task."""

    def __init__(
        self,
        registry: ScheduledEventRegistry,
        interval_seconds: float,
        clock: Callable[[], datetime] | None = None,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._registry = registry
        self._interval = interval_seconds
        self._clock = clock or utcnow
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=f"sweep:{self._registry.name}")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            try:
                self._registry.sweep(self._clock())
            except Exception:
                logger.exception("Sweep of %s failed", self._registry.name)
            await asyncio.sleep(self._interval)
