"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured backend."""

    kwargs: dict[str, Any] = {"future": True, "echo": settings.database_echo}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
        kwargs["pool_recycle"] = 300
    return kwargs


db_url = settings.database_url
engine: Engine = create_engine(db_url, **_build_engine_kwargs(db_url))


def enable_sqlite_savepoints(target: Engine) -> None:
    """Let SQLAlchemy issue BEGIN itself so SAVEPOINTs nest inside the outer transaction."""

    @event.listens_for(target, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


if db_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "enable_sqlite_savepoints",
    "engine",
    "get_db",
]
