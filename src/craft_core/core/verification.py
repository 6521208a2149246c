from __future__ import annotations

import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Callable

from .config import CoreConfig, utcnow
from .errors import AlreadyPendingError, CodeExpiredError, NotFoundError
from .scheduler import ScheduledEventRegistry
from .types import VerifyCode

logger = logging.getLogger(__name__)


def generate_code(length: int = 6, alphabet: str = CoreConfig.code_alphabet) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


class VerificationRegistry:
    """Single-use verification codes keyed by the requesting chat id.

    Every live code is backed by an expiry event on ``events``. Redemption and
    expiry race through :meth:`ScheduledEventRegistry.cancel`: whichever side
    detaches the event first wins, the other sees the code as gone.
    """

    def __init__(
        self,
        events: ScheduledEventRegistry,
        ttl_seconds: float,
        clock: Callable[[], datetime] | None = None,
        code_factory: Callable[[], str] | None = None,
    ):
        self._events = events
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or utcnow
        self._code_factory = code_factory or generate_code
        self._lock = threading.Lock()
        self._codes: dict[int, VerifyCode] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def exists(self, requester_id: int) -> bool:
        now = self._clock()
        with self._lock:
            code = self._codes.get(requester_id)
            if code is not None and code.is_expired(now):
                self._discard(code)
                return False
            return code is not None

    def get(self, requester_id: int) -> VerifyCode | None:
        with self._lock:
            return self._codes.get(requester_id)

    def issue(self, requester_id: int) -> VerifyCode:
        now = self._clock()
        with self._lock:
            existing = self._codes.get(requester_id)
            if existing is not None and existing.is_expired(now):
                self._discard(existing)
                existing = None
            if existing is not None:
                raise AlreadyPendingError(f"verification code already pending for {requester_id}")
            code = VerifyCode(
                code=self._code_factory(),
                issued_to=requester_id,
                created_at=now,
                ttl=self._ttl,
            )
            event = self._events.schedule(
                self._ttl.total_seconds(),
                lambda expired, code=code: self._on_expired(code, expired),
                scheduled_at=now,
            )
            code.event_id = event.id
            self._codes[requester_id] = code
        logger.debug("Issued verification code for %s (ttl=%ss)", requester_id, self._ttl.total_seconds())
        return code

    def redeem(self, token: str) -> int:
        """Consume ``token`` and return the chat id it was issued to.

        Raises :class:`NotFoundError` for unknown tokens and
        :class:`CodeExpiredError` when the code's expiry already won.
        """
        now = self._clock()
        with self._lock:
            matches = [code for code in self._codes.values() if code.code == token]
            if not matches:
                raise NotFoundError("no live verification code matches")

            # Elapsed codes are dropped on the way; a live code sharing the
            # token takes precedence over them.
            match = None
            for code in matches:
                if code.is_expired(now):
                    self._discard(code)
                elif match is None:
                    match = code
            if match is None:
                logger.debug("Submitted token matched only elapsed verification codes")
                raise CodeExpiredError("verification code expired")

            del self._codes[match.issued_to]
            if match.event_id is None or not self._events.cancel(match.event_id):
                logger.debug("Verification code for %s expired before redemption", match.issued_to)
                raise CodeExpiredError("verification code expired")

        logger.debug("Redeemed verification code for %s", match.issued_to)
        return match.issued_to

    def remove(self, requester_id: int) -> bool:
        with self._lock:
            code = self._codes.pop(requester_id, None)
            if code is None:
                return False
            if code.event_id is not None:
                self._events.cancel(code.event_id)
        return True

    def _on_expired(self, code: VerifyCode, expired: bool) -> None:
        # Only drop the exact code this event backs; a newer code for the same
        # requester has its own event.
        with self._lock:
            if self._codes.get(code.issued_to) is code:
                del self._codes[code.issued_to]
                logger.info("Verification code for %s expired", code.issued_to)

    def _discard(self, code: VerifyCode) -> None:
        # Caller holds the lock.
        if self._codes.get(code.issued_to) is code:
            del self._codes[code.issued_to]
        if code.event_id is not None:
            self._events.cancel(code.event_id)
