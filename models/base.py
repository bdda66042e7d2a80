"""
Database configuration and base model.

Uses SQLAlchemy 2.0 declarative style with SQLite.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config import PATHS


def get_database_path() -> Path:
    """Get the path to the SQLite database file."""
    PATHS.data_dir.mkdir(parents=True, exist_ok=True)
    return PATHS.database


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def make_engine(url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create a database engine.

    Args:
        url: SQLAlchemy URL, defaults to the application database
        **kwargs: Extra create_engine() arguments (e.g. poolclass for tests)
    """
    url = url or f"sqlite:///{get_database_path()}"
    return create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False},  # Allow multi-threaded access
        **kwargs,
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


# Application engine and session factory, created on first use
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = make_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory


@contextmanager
def get_session(session_factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """Context manager for database sessions."""
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize the database, creating all tables."""
    # Register the mapped classes on Base.metadata
    import models.player  # noqa: F401
    import models.tournament  # noqa: F401

    Base.metadata.create_all(bind=bind or get_engine())


def reset_db(bind: Optional[Engine] = None) -> None:
    """Drop and recreate all tables. USE WITH CAUTION."""
    import models.player  # noqa: F401
    import models.tournament  # noqa: F401

    bind = bind or get_engine()
    Base.metadata.drop_all(bind=bind)
    Base.metadata.create_all(bind=bind)
