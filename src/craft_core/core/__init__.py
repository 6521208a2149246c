from .commands import CommandDispatcher, CommandSpec
from .config import CoreConfig
from .errors import (
    AlreadyLinkedError,
    AlreadyPendingError,
    CodeExpiredError,
    ConfigVersionError,
    CraftCoreError,
    NotFoundError,
    PersistenceError,
    StartupError,
    UnknownCommandError,
)
from .links import IdentityLinkStore
from .ports import Clock, LinkStoragePort
from .protocol import LinkingProtocol
from .runtime import CraftCore
from .scheduler import PeriodicSweeper, ScheduledEventRegistry
from .types import (
    AccountConnection,
    AccountType,
    CommandInvocation,
    DispatchResult,
    LinkResult,
    LinkState,
    ScheduledEvent,
    UnlinkResult,
    VerifyCode,
    WarmupStatus,
)
from .verification import VerificationRegistry, generate_code
from .warmup import WarmupScheduler

__all__ = [
    "CraftCore",
    "CoreConfig",
    "CommandDispatcher",
    "CommandSpec",
    "IdentityLinkStore",
    "LinkingProtocol",
    "PeriodicSweeper",
    "ScheduledEventRegistry",
    "VerificationRegistry",
    "WarmupScheduler",
    "generate_code",
    "Clock",
    "LinkStoragePort",
    "AccountConnection",
    "AccountType",
    "CommandInvocation",
    "DispatchResult",
    "LinkResult",
    "LinkState",
    "ScheduledEvent",
    "UnlinkResult",
    "VerifyCode",
    "WarmupStatus",
    "CraftCoreError",
    "AlreadyLinkedError",
    "AlreadyPendingError",
    "CodeExpiredError",
    "ConfigVersionError",
    "NotFoundError",
    "PersistenceError",
    "StartupError",
    "UnknownCommandError",
]
