"""Database bootstrap helpers shared by the gateway stores."""

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from cardgate.common.config import settings


# SQLite is only used for local runs and tests; its connections cross threads in the app server.
_connect_args = {"check_same_thread": False} if settings.database_dsn.startswith("sqlite") else {}

# Single SQLAlchemy engine per process.
engine = create_engine(settings.database_dsn, pool_pre_ping=True, connect_args=_connect_args)
# `expire_on_commit=False` keeps ORM objects readable after commit in handlers.
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""

    pass
