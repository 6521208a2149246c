from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .commands import CommandDispatcher
from .config import CoreConfig, utcnow
from .errors import PersistenceError, StartupError
from .links import IdentityLinkStore
from .ports import LinkStoragePort
from .protocol import LinkingProtocol
from .scheduler import PeriodicSweeper, ScheduledEventRegistry
from .types import AccountConnection, AccountType, CommandInvocation, LinkResult, UnlinkResult
from .verification import VerificationRegistry, generate_code
from .warmup import WarmupScheduler


class CraftCore:
    """Owns the link/verification services for one server process.

    Construct it at start-up, ``await start()`` inside the running event loop
    and ``await stop()`` on shutdown. Other components receive the instance
    (or its ``protocol`` / ``links``) explicitly.
    """

    def __init__(
        self,
        storage: LinkStoragePort,
        config: CoreConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        code_factory: Callable[[], str] | None = None,
    ):
        self.config = config or CoreConfig()
        self._clock = clock or utcnow
        self._logger = logging.getLogger(__name__)

        self.verify_events = ScheduledEventRegistry("verify-expiry", clock=self._clock)
        self.warmup_events = ScheduledEventRegistry("warmups", clock=self._clock)
        self.links = IdentityLinkStore(storage)
        self.verification = VerificationRegistry(
            self.verify_events,
            ttl_seconds=self.config.verify_expire_delay,
            clock=self._clock,
            code_factory=code_factory
            or (lambda: generate_code(self.config.code_length, self.config.code_alphabet)),
        )
        self.warmups = WarmupScheduler(self.warmup_events, clock=self._clock)
        self.protocol = LinkingProtocol(
            self.verification,
            self.links,
            warmups=self.warmups,
            submit_cooldown=self.config.submit_cooldown,
        )
        self.discord_commands = CommandDispatcher("discord", warmups=self.warmups)
        self.minecraft_commands = CommandDispatcher("minecraft", warmups=self.warmups)
        self._sweepers = [
            PeriodicSweeper(self.verify_events, self.config.verify_check_delay, clock=self._clock),
            PeriodicSweeper(self.warmup_events, self.config.warmup_check_delay, clock=self._clock),
        ]
        self._register_builtin_commands()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        try:
            self.links.load()
        except PersistenceError as exc:
            self._logger.error("Failed to load account links, refusing to start: %s", exc)
            raise StartupError("account links could not be loaded") from exc

        for sweeper in self._sweepers:
            sweeper.start()
        self._started = True
        self._logger.info("CraftCore started with %d account link(s)", len(self.links))

    async def stop(self) -> None:
        for sweeper in self._sweepers:
            await sweeper.stop()
        dropped = self.verify_events.clear() + self.warmup_events.clear()
        self._started = False
        self._logger.info("CraftCore stopped (%d pending event(s) dropped)", dropped)

    def tick(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        return self.verify_events.sweep(now) + self.warmup_events.sweep(now)

    def get_account(self, account_type: AccountType, key: str) -> AccountConnection | None:
        if account_type is AccountType.DISCORD:
            discord_id = _parse_discord_id(key)
            if discord_id is None:
                return None
            return self.links.get_by_chat_id(discord_id)
        if account_type is AccountType.MINECRAFT:
            return self.links.get_by_game_id(str(key))
        return None

    def _register_builtin_commands(self) -> None:
        self.discord_commands.register(
            "link",
            self._discord_link,
            description="Get a code to link your discord account with your minecraft account",
        )
        self.discord_commands.register(
            "unlink",
            self._discord_unlink,
            description="Unlink your discord account from your minecraft account",
        )
        self.minecraft_commands.register(
            "verify",
            self._minecraft_verify,
            description="Link your minecraft account using a code from discord",
        )
        self.minecraft_commands.register(
            "unlink",
            self._minecraft_unlink,
            description="Unlink your minecraft account from your discord account",
        )

    def _discord_link(self, invocation: CommandInvocation) -> LinkResult:
        discord_id = _parse_discord_id(invocation.actor_id)
        if discord_id is None:
            return LinkResult(status="invalid_id", reason="bad_discord_id")
        return self.protocol.request_link(discord_id)

    def _discord_unlink(self, invocation: CommandInvocation) -> UnlinkResult:
        discord_id = _parse_discord_id(invocation.actor_id)
        if discord_id is None:
            return UnlinkResult(status="invalid_id", reason="bad_discord_id")
        return self.protocol.unlink_chat(discord_id)

    def _minecraft_verify(self, invocation: CommandInvocation) -> LinkResult:
        if not invocation.args:
            return LinkResult(status="invalid_code", reason="missing_code")
        return self.protocol.submit_code(invocation.actor_id, invocation.args[0])

    def _minecraft_unlink(self, invocation: CommandInvocation) -> UnlinkResult:
        return self.protocol.unlink_game(invocation.actor_id)


def _parse_discord_id(raw) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
