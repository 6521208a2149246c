from __future__ import annotations

import asyncio

from craft_core import AccountType, CoreConfig, CraftCore
from craft_core.core.types import CommandInvocation
from craft_core.persistence.sqlalchemy import (
    SQLAlchemyLinkStorage,
    SQLAlchemyUnitOfWork,
    build_engine,
    build_session_factory,
    create_schema,
)


def make_storage() -> SQLAlchemyLinkStorage:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    session_factory = build_session_factory(engine)

    def _uow_factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return SQLAlchemyLinkStorage(_uow_factory)


async def main() -> None:
    core = CraftCore(make_storage(), config=CoreConfig(verify_expire_delay=120))
    await core.start()
    try:
        issued = core.discord_commands.dispatch(CommandInvocation(name="link", actor_id="555"))
        print("link:", issued.value.status, issued.value.code)

        verified = core.minecraft_commands.dispatch(
            CommandInvocation(name="verify", actor_id="uuid-1", args=[issued.value.code])
        )
        print("verify:", verified.value.status, verified.value.connection)

        print("lookup:", core.get_account(AccountType.DISCORD, "555"))
    finally:
        await core.stop()


if __name__ == "__main__":
    asyncio.run(main())
