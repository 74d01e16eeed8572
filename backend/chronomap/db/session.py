"""
Database engine and session setup for the SQL backend.
"""
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from chronomap.config import get_settings
from chronomap.models import Base

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def make_engine(database_url: str, echo: bool = False) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a thread pool
        connect_args["check_same_thread"] = False
    if database_url in IN_MEMORY_URLS:
        # One shared connection, otherwise every session sees an empty database
        return create_engine(
            database_url, echo=echo, connect_args=connect_args, poolclass=StaticPool
        )
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return make_engine(settings.database_url, echo=settings.debug)


@lru_cache
def get_session_factory() -> sessionmaker:
    return make_session_factory(get_engine())


def init_db(engine: Engine = None) -> None:
    """Create all tables."""
    Base.metadata.create_all(bind=engine or get_engine())
