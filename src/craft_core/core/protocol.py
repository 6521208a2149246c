from __future__ import annotations

import logging

from .errors import (
    AlreadyLinkedError,
    AlreadyPendingError,
    CodeExpiredError,
    NotFoundError,
    PersistenceError,
)
from .links import IdentityLinkStore
from .types import LinkResult, LinkState, UnlinkResult
from .verification import VerificationRegistry
from .warmup import WarmupScheduler

logger = logging.getLogger(__name__)

SUBMIT_COMMAND = "verify:attempt"


class LinkingProtocol:
    """Drives a discord id from unlinked, through an issued code, to a link.

    Registry errors are turned into :class:`LinkResult` / :class:`UnlinkResult`
    statuses here; nothing below this layer knows about user-facing outcomes.

    Redeeming a code and creating the link are two separate steps. If the link
    step fails after the code was consumed, the code is not re-issued and the
    requester has to ask for a new one.
    """

    def __init__(
        self,
        verification: VerificationRegistry,
        links: IdentityLinkStore,
        warmups: WarmupScheduler | None = None,
        submit_cooldown: float = 0.0,
    ):
        self._verification = verification
        self._links = links
        self._warmups = warmups
        self._submit_cooldown = submit_cooldown

    def state_of(self, discord_id: int) -> LinkState:
        if self._links.get_by_chat_id(discord_id) is not None:
            return LinkState.LINKED
        if self._verification.exists(discord_id):
            return LinkState.CODE_ISSUED
        return LinkState.UNLINKED

    def request_link(self, discord_id: int) -> LinkResult:
        existing = self._links.get_by_chat_id(discord_id)
        if existing is not None:
            return LinkResult(status="already_linked", connection=existing, reason="discord_linked")
        if self._verification.exists(discord_id):
            return LinkResult(status="duplicate_request", reason="code_pending")
        try:
            code = self._verification.issue(discord_id)
        except AlreadyPendingError:
            return LinkResult(status="duplicate_request", reason="code_pending")
        return LinkResult(status="code_issued", code=code.code)

    def submit_code(self, minecraft_id: str, code: str) -> LinkResult:
        if self._warmups is not None:
            remaining = self._warmups.remaining(minecraft_id, SUBMIT_COMMAND)
            if remaining > 0:
                return LinkResult(status="rate_limited", remaining_seconds=remaining)

        existing = self._links.get_by_game_id(minecraft_id)
        if existing is not None:
            return LinkResult(status="already_linked", connection=existing, reason="minecraft_linked")

        token = (code or "").strip()
        try:
            discord_id = self._verification.redeem(token)
        except CodeExpiredError:
            return LinkResult(status="expired_code", reason="code_expired")
        except NotFoundError:
            self._start_submit_cooldown(minecraft_id)
            logger.warning("Invalid verification code submitted by %s", minecraft_id)
            return LinkResult(status="invalid_code", reason="code_not_found")

        try:
            connection = self._links.link(minecraft_id, discord_id)
        except AlreadyLinkedError as exc:
            logger.warning(
                "Code for %s consumed but link to %s rejected: %s",
                discord_id,
                minecraft_id,
                exc,
            )
            return LinkResult(status="already_linked", reason="link_race")
        except PersistenceError as exc:
            logger.error("Failed to persist link %s <-> %s: %s", minecraft_id, discord_id, exc)
            return LinkResult(status="error", reason="persistence_failure")
        return LinkResult(status="linked", connection=connection)

    def unlink_chat(self, discord_id: int) -> UnlinkResult:
        return self._unlink(lambda: self._links.unlink_chat_id(discord_id))

    def unlink_game(self, minecraft_id: str) -> UnlinkResult:
        return self._unlink(lambda: self._links.unlink_game_id(minecraft_id))

    def _unlink(self, remove) -> UnlinkResult:
        try:
            connection = remove()
        except PersistenceError as exc:
            logger.error("Failed to persist unlink: %s", exc)
            return UnlinkResult(status="error", reason="persistence_failure")
        if connection is None:
            return UnlinkResult(status="not_linked")
        return UnlinkResult(status="unlinked", connection=connection)

    def _start_submit_cooldown(self, minecraft_id: str) -> None:
        if self._warmups is None or self._submit_cooldown <= 0:
            return
        self._warmups.check(minecraft_id, SUBMIT_COMMAND, self._submit_cooldown)
