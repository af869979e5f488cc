"""Engine and session factory."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections may be used off their creating thread."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
    return create_engine(database_url, pool_pre_ping=True, echo=echo)


def init_db(engine: Engine) -> None:
    """Create missing tables."""
    # Import for side effect: registers the mapped classes on Base.metadata
    from helium.store import models  # noqa: F401

    Base.metadata.create_all(engine)


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    engine = create_db_engine(database_url, echo=echo)
    init_db(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
