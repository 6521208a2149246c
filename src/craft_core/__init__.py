from .core.config import CoreConfig
from .core.errors import CraftCoreError, StartupError
from .core.protocol import LinkingProtocol
from .core.runtime import CraftCore
from .core.types import AccountConnection, AccountType, LinkResult, LinkState, UnlinkResult

__all__ = [
    "CraftCore",
    "CoreConfig",
    "LinkingProtocol",
    "AccountConnection",
    "AccountType",
    "LinkResult",
    "LinkState",
    "UnlinkResult",
    "CraftCoreError",
    "StartupError",
]
