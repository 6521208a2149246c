from __future__ import annotations

import logging
import math
import threading
from datetime import datetime
from typing import Callable

from .config import utcnow
from .scheduler import ScheduledEventRegistry
from .types import EventCallback, WarmupStatus

logger = logging.getLogger(__name__)


class WarmupScheduler:
    """Per-(actor, command) cooldowns backed by scheduled events."""

    def __init__(
        self,
        events: ScheduledEventRegistry,
        clock: Callable[[], datetime] | None = None,
    ):
        self._events = events
        self._clock = clock or utcnow
        self._lock = threading.RLock()

    def remaining(self, actor_id: str, command: str, now: datetime | None = None) -> int:
        now = now or self._clock()
        event = self._events.find((actor_id, command))
        if event is None or event.is_due(now):
            return 0
        return math.ceil(event.remaining(now).total_seconds())

    def check(
        self,
        actor_id: str,
        command: str,
        warmup_seconds: float,
        callback: EventCallback | None = None,
    ) -> WarmupStatus:
        """Reject with the remaining time while a cooldown is live, else start one.

        A cooldown whose deadline has passed but which the periodic sweep has
        not reached yet is fired first, so it is never reported as live.
        """
        now = self._clock()
        key = (actor_id, command)
        with self._lock:
            event = self._events.find(key)
            if event is not None and event.is_due(now):
                self._events.fire_key(key, now)
                event = self._events.find(key)
            if event is not None:
                return WarmupStatus(ready=False, remaining_seconds=max(1, self.remaining(actor_id, command, now)))
            if warmup_seconds > 0:
                self._events.schedule(
                    warmup_seconds,
                    callback or _noop,
                    key=key,
                    scheduled_at=now,
                )
                logger.debug("Warmup started for %s on %s (%ss)", actor_id, command, warmup_seconds)
        return WarmupStatus(ready=True)

    def cancel(self, actor_id: str, command: str) -> bool:
        with self._lock:
            return self._events.cancel_key((actor_id, command))


def _noop(_expired: bool) -> None:
    return None
