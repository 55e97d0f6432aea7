"""Database engine and session management."""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from placetrack.core.config import settings
from placetrack.db.base import Base


def configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and proper SAVEPOINT support on a SQLite engine.

    pysqlite starts transactions lazily and breaks SAVEPOINT semantics, so
    the driver's own transaction handling is turned off and BEGIN is emitted
    explicitly.
    """

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine, handling SQLite specially."""
    database_url = database_url or settings.database_url
    connect_args = {}
    pool_config = {}

    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        pool_config = {
            "pool_pre_ping": True,
        }
    else:
        # PostgreSQL/MySQL connection pooling configuration
        pool_config = {
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,    # Test connections before using them
            "pool_recycle": 3600,     # Recycle connections after 1 hour
        }

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        echo=settings.debug if echo is None else echo,
        **pool_config,
    )

    if database_url.startswith("sqlite"):
        configure_sqlite(engine)

    return engine


def create_all(engine: Engine) -> None:
    """Create every table registered on ``Base.metadata``."""
    # Import models so they're registered with Base.metadata
    import placetrack.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


engine = build_engine(echo=False)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get a database session for one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
    """Unit of work: commit on success, roll back on any error, always close."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
