from __future__ import annotations

import logging
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError

from ...core.errors import PersistenceError
from ...core.types import AccountConnection
from ..interfaces import UnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyLinkStorage:
    """``LinkStoragePort`` over the ``cc_account_links`` table.

    ``save_links`` makes the table match the given set exactly, in a single
    transaction.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self._uow_factory = uow_factory

    def load_links(self) -> set[AccountConnection]:
        try:
            with self._uow_factory() as uow:
                rows = uow.links.list_all()
                return {
                    AccountConnection(minecraft_id=row.minecraft_id, discord_id=int(row.discord_id))
                    for row in rows
                }
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not read account links: {exc}") from exc

    def save_links(self, links: Iterable[AccountConnection]) -> None:
        wanted = {(c.minecraft_id, c.discord_id) for c in links}
        try:
            with self._uow_factory() as uow:
                current = {(row.minecraft_id, int(row.discord_id)) for row in uow.links.list_all()}
                for minecraft_id, _discord_id in current - wanted:
                    uow.links.delete_by_minecraft_id(minecraft_id)
                for minecraft_id, discord_id in sorted(wanted - current):
                    uow.links.add(minecraft_id, discord_id)
                uow.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"could not write account links: {exc}") from exc
        logger.debug("Saved %d account link(s)", len(wanted))
