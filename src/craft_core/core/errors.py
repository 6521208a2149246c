from __future__ import annotations


class CraftCoreError(Exception):
    pass


class AlreadyPendingError(CraftCoreError):
    pass


class AlreadyLinkedError(CraftCoreError):
    pass


class NotFoundError(CraftCoreError):
    pass


class CodeExpiredError(NotFoundError):
    """The code existed but its expiry fired (or was due) before redemption."""


class PersistenceError(CraftCoreError):
    pass


class StartupError(CraftCoreError):
    pass


class ConfigVersionError(CraftCoreError):
    pass


class UnknownCommandError(CraftCoreError):
    pass
