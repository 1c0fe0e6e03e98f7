"""
SQLAlchemy base configuration and session management.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
Designed to be portable between SQLite (dev) and PostgreSQL (prod).

There is no process-wide engine: the application factory builds one
and hands the session factory to whoever needs database access.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def _is_sqlite(url: str) -> bool:
    return url.startswith('sqlite')


def make_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine with configuration appropriate for the database type.

    For SQLite, transaction handling is taken over from pysqlite so that
    SAVEPOINT works; the ingestion writer relies on it to skip a single
    failing row without losing the rest of the batch.
    """
    engine_kwargs = {
        'echo': echo,  # Log SQL in debug mode
    }

    if _is_sqlite(url):
        engine_kwargs['connect_args'] = {'check_same_thread': False}

    engine = create_engine(url, **engine_kwargs)

    if _is_sqlite(url):
        @event.listens_for(engine, 'connect')
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """
            Configure SQLite for concurrent reads during ingestion.

            WAL mode lets API queries proceed while a run holds the
            write transaction.
            """
            # Disable pysqlite's implicit BEGIN, we emit our own below
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA journal_mode=WAL')
            cursor.execute('PRAGMA synchronous=NORMAL')
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

        @event.listens_for(engine, 'begin')
        def do_begin(conn):
            conn.exec_driver_sql('BEGIN')

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,  # Avoid lazy loading issues
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with session_scope(session_factory) as session:
            session.query(...)

    Automatically handles commit/rollback and session cleanup.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist.
    """
    # Import models so they register on Base.metadata
    from satplan.models import satellite, tle  # noqa: F401

    Base.metadata.create_all(bind=engine)
