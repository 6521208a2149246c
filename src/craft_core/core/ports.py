from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from .types import AccountConnection


class LinkStoragePort(Protocol):
    def load_links(self) -> set[AccountConnection]:
        ...

    def save_links(self, links: Iterable[AccountConnection]) -> None:
        ...


class Clock(Protocol):
    def __call__(self) -> datetime:
        ...
