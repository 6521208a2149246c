from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Hashable, Optional


EventCallback = Callable[[bool], None]


class AccountType(enum.Enum):
    DISCORD = "discord"
    MINECRAFT = "minecraft"


class LinkState(enum.Enum):
    UNLINKED = "unlinked"
    CODE_ISSUED = "code_issued"
    LINKED = "linked"


@dataclass(frozen=True)
class AccountConnection:
    minecraft_id: str
    discord_id: int


@dataclass
class ScheduledEvent:
    id: str
    fire_at: datetime
    callback: EventCallback
    key: Optional[Hashable] = None
    seq: int = 0
    cancelled: bool = False

    def is_due(self, now: datetime) -> bool:
        return self.fire_at <= now

    def remaining(self, now: datetime) -> timedelta:
        return max(self.fire_at - now, timedelta(0))


@dataclass
class VerifyCode:
    code: str
    issued_to: int
    created_at: datetime
    ttl: timedelta
    event_id: Optional[str] = None

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.ttl

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass
class LinkResult:
    status: str
    code: Optional[str] = None
    connection: Optional[AccountConnection] = None
    remaining_seconds: int = 0
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in ("code_issued", "linked")


@dataclass
class UnlinkResult:
    status: str
    connection: Optional[AccountConnection] = None
    reason: Optional[str] = None

    @property
    def removed(self) -> bool:
        return self.status == "unlinked"


@dataclass
class WarmupStatus:
    ready: bool
    remaining_seconds: int = 0


@dataclass
class CommandInvocation:
    name: str
    actor_id: str
    args: list[str] = field(default_factory=list)


@dataclass
class DispatchResult:
    status: str
    value: Any = None
    remaining_seconds: int = 0
