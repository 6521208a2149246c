from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .models import AccountLink


class AccountLinkRepo:
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> list[AccountLink]:
        stmt = select(AccountLink).order_by(AccountLink.id.asc())
        return list(self.session.execute(stmt).scalars().all())

    def get_by_minecraft_id(self, minecraft_id: str) -> AccountLink | None:
        stmt = select(AccountLink).where(AccountLink.minecraft_id == minecraft_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_discord_id(self, discord_id: int) -> AccountLink | None:
        stmt = select(AccountLink).where(AccountLink.discord_id == discord_id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def add(self, minecraft_id: str, discord_id: int) -> AccountLink:
        row = AccountLink(minecraft_id=minecraft_id, discord_id=discord_id)
        self.session.add(row)
        self.session.flush()
        return row

    def delete_by_minecraft_id(self, minecraft_id: str) -> int:
        stmt = delete(AccountLink).where(AccountLink.minecraft_id == minecraft_id)
        return self.session.execute(stmt).rowcount or 0

    def delete_by_discord_id(self, discord_id: int) -> int:
        stmt = delete(AccountLink).where(AccountLink.discord_id == discord_id)
        return self.session.execute(stmt).rowcount or 0
