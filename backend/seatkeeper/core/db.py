from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .exceptions import StorageError, StorageTimeout

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("timeout", "timed out", "database is locked", "canceling statement", "lock not available")


def engine_options(db_url: str, timeout_seconds: int) -> dict:
    """
    Build create_engine() keyword arguments for the given URL.

    SQLite waits on a locked database for `timeout` seconds; PostgreSQL cancels
    any statement running longer than the same deadline.
    """
    if db_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": timeout_seconds}}
    return {
        "connect_args": {"options": f"-c statement_timeout={timeout_seconds * 1000}"},
        "pool_pre_ping": True,
        "pool_timeout": timeout_seconds,
    }


engine = create_engine(settings.DB_URL, **engine_options(settings.DB_URL, settings.DB_TIMEOUT_SECONDS))

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a block of ORM work as one unit.

    Commits when the block finishes; on any exception the session is rolled
    back and the exception re-raised for the caller to translate.

        with transaction(db):
            ledger.start_timing(...)
            registry.write_seat(...)
    """
    try:
        yield db
        db.commit()
    except Exception as e:
        logger.warning(f"Transaction rolled back: {e}")
        db.rollback()
        raise


def is_timeout(error: OperationalError) -> bool:
    text = str(error.orig if error.orig is not None else error).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate SQLAlchemy failures into StorageTimeout or StorageError."""
    try:
        yield
    except PoolTimeoutError as e:
        logger.error(f"Connection pool timed out: {e}")
        raise StorageTimeout() from e
    except OperationalError as e:
        if is_timeout(e):
            logger.error(f"Storage timed out: {e}")
            raise StorageTimeout() from e
        logger.error(f"Storage operation failed: {e}")
        raise StorageError() from e
    except SQLAlchemyError as e:
        logger.error(f"Storage operation failed: {e}")
        raise StorageError() from e
