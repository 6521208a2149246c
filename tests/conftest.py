from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from craft_core.core.scheduler import ScheduledEventRegistry
from craft_core.persistence.sqlalchemy.db import build_engine, build_session_factory, create_schema
from craft_core.persistence.sqlalchemy.storage import SQLAlchemyLinkStorage
from craft_core.persistence.sqlalchemy.uow import SQLAlchemyUnitOfWork


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class MemoryLinkStorage:
    def __init__(self, links=None):
        self.links = set(links or ())
        self.saves = 0
        self.fail_save = False
        self.fail_load = False

    def load_links(self):
        if self.fail_load:
            raise OSError("disk unavailable")
        return set(self.links)

    def save_links(self, links):
        if self.fail_save:
            raise OSError("disk full")
        self.links = set(links)
        self.saves += 1


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def events(clock):
    return ScheduledEventRegistry("test", clock=clock)


@pytest.fixture()
def memory_storage():
    return MemoryLinkStorage()


@pytest.fixture()
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    return build_session_factory(engine)


@pytest.fixture()
def uow_factory(session_factory):
    def _factory():
        return SQLAlchemyUnitOfWork(session_factory)

    return _factory


@pytest.fixture()
def sql_storage(uow_factory):
    return SQLAlchemyLinkStorage(uow_factory)
