from __future__ import annotations

import logging
import threading

from .errors import AlreadyLinkedError, NotFoundError, PersistenceError
from .ports import LinkStoragePort
from .types import AccountConnection

logger = logging.getLogger(__name__)


class IdentityLinkStore:
    """Finalized (minecraft id, discord id) pairs, unique in both directions.

    Every mutation is written through ``storage`` while the store lock is
    held. If the write fails the in-memory change is undone and
    :class:`PersistenceError` is raised.
    """

    def __init__(self, storage: LinkStoragePort):
        self._storage = storage
        self._lock = threading.Lock()
        self._by_minecraft: dict[str, AccountConnection] = {}
        self._by_discord: dict[int, AccountConnection] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_minecraft)

    def load(self) -> int:
        try:
            links = self._storage.load_links()
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"failed to load account links: {exc}") from exc

        by_minecraft: dict[str, AccountConnection] = {}
        by_discord: dict[int, AccountConnection] = {}
        for connection in links:
            if connection.minecraft_id in by_minecraft or connection.discord_id in by_discord:
                raise PersistenceError(f"stored links are not one-to-one at {connection!r}")
            by_minecraft[connection.minecraft_id] = connection
            by_discord[connection.discord_id] = connection

        with self._lock:
            self._by_minecraft = by_minecraft
            self._by_discord = by_discord
            self._loaded = True
        logger.info("Loaded %d account link(s)", len(by_minecraft))
        return len(by_minecraft)

    def all(self) -> set[AccountConnection]:
        with self._lock:
            return set(self._by_minecraft.values())

    def find_by_game_id(self, minecraft_id: str) -> AccountConnection:
        with self._lock:
            connection = self._by_minecraft.get(minecraft_id)
        if connection is None:
            raise NotFoundError(f"no link for minecraft id {minecraft_id}")
        return connection

    def find_by_chat_id(self, discord_id: int) -> AccountConnection:
        with self._lock:
            connection = self._by_discord.get(discord_id)
        if connection is None:
            raise NotFoundError(f"no link for discord id {discord_id}")
        return connection

    def get_by_game_id(self, minecraft_id: str) -> AccountConnection | None:
        with self._lock:
            return self._by_minecraft.get(minecraft_id)

    def get_by_chat_id(self, discord_id: int) -> AccountConnection | None:
        with self._lock:
            return self._by_discord.get(discord_id)

    def link(self, minecraft_id: str, discord_id: int) -> AccountConnection:
        with self._lock:
            if minecraft_id in self._by_minecraft:
                raise AlreadyLinkedError(f"minecraft id {minecraft_id} is already linked")
            if discord_id in self._by_discord:
                raise AlreadyLinkedError(f"discord id {discord_id} is already linked")

            connection = AccountConnection(minecraft_id=minecraft_id, discord_id=discord_id)
            self._by_minecraft[minecraft_id] = connection
            self._by_discord[discord_id] = connection
            try:
                self._persist()
            except PersistenceError:
                del self._by_minecraft[minecraft_id]
                del self._by_discord[discord_id]
                raise
        logger.info("Linked minecraft id %s to discord id %s", minecraft_id, discord_id)
        return connection

    def unlink_game_id(self, minecraft_id: str) -> AccountConnection | None:
        with self._lock:
            return self._remove(self._by_minecraft.get(minecraft_id))

    def unlink_chat_id(self, discord_id: int) -> AccountConnection | None:
        with self._lock:
            return self._remove(self._by_discord.get(discord_id))

    def _remove(self, connection: AccountConnection | None) -> AccountConnection | None:
        if connection is None:
            return None
        del self._by_minecraft[connection.minecraft_id]
        del self._by_discord[connection.discord_id]
        try:
            self._persist()
        except PersistenceError:
            self._by_minecraft[connection.minecraft_id] = connection
            self._by_discord[connection.discord_id] = connection
            raise
        logger.info(
            "Unlinked minecraft id %s from discord id %s",
            connection.minecraft_id,
            connection.discord_id,
        )
        return connection

    def _persist(self) -> None:
        try:
            self._storage.save_links(set(self._by_minecraft.values()))
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"failed to save account links: {exc}") from exc
