from __future__ import annotations

from sqlalchemy import BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


DiscordIDType = BigInteger().with_variant(Integer, "sqlite")


class AccountLink(TimestampMixin, Base):
    __tablename__ = "cc_account_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    minecraft_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    discord_id: Mapped[int] = mapped_column(DiscordIDType, nullable=False, unique=True)
