"""
SQLite engine and session handling for Folio.

One engine per process, created lazily from ``config.db_path``. Every
connection enables SQLite foreign keys so transactions, targets, and the
security catalog stay consistent.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from folio.config import config

logger = logging.getLogger(__name__)

_engine = None
_engine_lock = threading.Lock()


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                db_path = config.db_path
                db_path.parent.mkdir(parents=True, exist_ok=True)

                engine = create_engine(
                    f"sqlite:///{db_path}",
                    echo=False,
                    # Insight analyzers query from worker threads
                    connect_args={"check_same_thread": False},
                )
                event.listen(engine, "connect", _enable_foreign_keys)
                _engine = engine
                logger.info("Database engine initialized: %s", db_path)

    return _engine


def init_db() -> None:
    """Create any missing tables. Existing data is left alone."""
    from folio.db.models import (  # noqa: F401
        AllocationTargetRecord,
        CashBalanceRecord,
        Security,
        TransactionRecord,
    )

    SQLModel.metadata.create_all(get_engine())
    logger.info("Database tables initialized")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Yield a session that commits on success and rolls back on error.

    Usage:
        with get_session() as session:
            session.add(Security(ticker="AAPL", security_name="Apple Inc."))
    """
    session = Session(get_engine())
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error("Database transaction failed, rolling back: %s", e, exc_info=True)
        session.rollback()
        raise
    finally:
        session.close()


def reset_engine() -> None:
    """Dispose of the engine so the next call picks up a new ``db_path``."""
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("Database engine reset")
