from __future__ import annotations

import functools
import logging
import os
from contextlib import contextmanager
from typing import Callable, Generator, Iterator, TypeVar
from urllib.parse import quote_plus

from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .settings import TRANSIENT_RETRY_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_database_url() -> str:
    """Get the database URL for API operations."""
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    db_user = os.getenv("DB_USER")
    db_pass = os.getenv("DB_PASSWORD")
    db_name = os.getenv("DB_DATABASE")
    db_host = os.getenv("DB_HOST", "db")
    db_port = os.getenv("DB_PORT", "5432")

    if db_user and db_pass and db_name:
        # URL-encode the password in case it contains special characters
        encoded_pass = quote_plus(db_pass)
        return f"postgresql+psycopg://{db_user}:{encoded_pass}@{db_host}:{db_port}/{db_name}"

    raise RuntimeError(
        "DATABASE_URL must be set, or DB_USER, DB_PASSWORD, and DB_DATABASE must all be set."
    )


DATABASE_URL = get_database_url()


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def _engine_options(url: str) -> dict:
    options: dict = {
        "future": True,
        "echo": os.getenv("LOG_LEVEL", "INFO").upper() == "DEBUG",
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory database
        options["connect_args"] = {"check_same_thread": False}
        options["poolclass"] = StaticPool
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_session() -> Generator[Session, None, None]:
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block of writes as one transaction.

    Commits when the block exits normally and rolls back on any exception,
    which is re-raised. Edges, the counters they justify and the notifications
    they trigger are always written inside one of these blocks.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def retry_on_transient(
    func: Callable[..., T] | None = None, *, attempts: int | None = None
) -> Callable[..., T]:
    """
    Retry a service call on transient store failures (connection loss, deadlock).

    Only for naturally idempotent operations: the wrapped callable must accept
    the session as its first positional argument. The session is rolled back
    between attempts so each attempt starts from a clean transaction.
    """

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(db: Session, *args, **kwargs) -> T:
            max_attempts = max(1, attempts or TRANSIENT_RETRY_ATTEMPTS)
            for attempt in range(1, max_attempts + 1):
                try:
                    return fn(db, *args, **kwargs)
                except OperationalError as e:
                    db.rollback()
                    if attempt >= max_attempts:
                        logger.error(
                            f"{fn.__name__}: giving up after {attempt} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"{fn.__name__}: transient store error on attempt {attempt}, retrying: {e}"
                    )
            raise AssertionError("unreachable")

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
