"""
Database connection and session management.

Each request gets its own session through the ``get_db`` dependency;
nothing is shared between requests except the engine's pool.
"""

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool, StaticPool

from streampanel.config import get_config
from streampanel.database.models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None

SQLITE_BUSY_TIMEOUT = 30


def is_memory_sqlite(url: str) -> bool:
    """True for SQLite URLs whose database lives only in this process."""
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return False
    return parsed.database in (None, "", ":memory:") or parsed.query.get("mode") == "memory"


def _get_pool_kwargs(url: str) -> dict:
    """Get pool configuration for the database URL."""
    if "sqlite" in url:
        # An in-memory database exists only on its one connection
        if is_memory_sqlite(url):
            return {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        # One connection per session; requests run on threadpool workers
        return {
            "poolclass": NullPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT,
            },
        }

    return {
        "poolclass": QueuePool,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


def configure_sqlite(engine: Engine, immediate: bool = False) -> None:
    """
    Let SQLAlchemy own transaction boundaries on pysqlite so SAVEPOINTs
    (used for per-entry import isolation) behave, and enforce foreign keys.

    With ``immediate`` every transaction takes the write lock up front
    (``BEGIN IMMEDIATE``) and the file runs in WAL mode. Sessions on
    separate connections then queue on the busy timeout instead of failing
    when a read-then-write transaction tries to upgrade its lock.
    """

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if immediate:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE" if immediate else "BEGIN")


def init_db(url: Optional[str] = None) -> Engine:
    """
    Initialize the database engine and create tables.

    Args:
        url: Database URL. Defaults to ``database.url`` from config.
    """
    global _engine, _session_factory

    config = get_config()
    url = url or config.database.url

    _engine = create_engine(
        url,
        echo=config.database.echo,
        future=True,
        **_get_pool_kwargs(url),
    )

    if "sqlite" in url:
        configure_sqlite(_engine, immediate=not is_memory_sqlite(url))

    _session_factory = sessionmaker(
        _engine,
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )

    Base.metadata.create_all(_engine)
    logger.info(f"Database initialized: {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory, initializing the database on first use."""
    if _session_factory is None:
        init_db()
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions."""
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_db() -> None:
    """Dispose of the engine."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
