from __future__ import annotations

from typing import Protocol


class AccountLinkRepo(Protocol):
    def list_all(self): ...
    def get_by_minecraft_id(self, minecraft_id: str): ...
    def get_by_discord_id(self, discord_id: int): ...
    def add(self, minecraft_id: str, discord_id: int): ...
    def delete_by_minecraft_id(self, minecraft_id: str) -> int: ...
    def delete_by_discord_id(self, discord_id: int) -> int: ...


class UnitOfWork(Protocol):
    links: AccountLinkRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
