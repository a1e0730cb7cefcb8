# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy engine, session factory, declarative base, and the FastAPI
dependency that provides a transactional DB session per request.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import settings


def _engine_kwargs(url: str) -> dict:
    # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
    kwargs = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # One request may hop threads under the threadpool executor
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def enable_sqlite_foreign_keys(engine) -> None:
    """SQLite ignores ON DELETE clauses unless the pragma is set per connection."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
