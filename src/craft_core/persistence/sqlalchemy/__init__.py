from .db import build_engine, build_session_factory, create_schema
from .storage import SQLAlchemyLinkStorage
from .uow import SQLAlchemyUnitOfWork

__all__ = [
    "build_engine",
    "build_session_factory",
    "create_schema",
    "SQLAlchemyLinkStorage",
    "SQLAlchemyUnitOfWork",
]
