# insurdash/db.py
"""
PostgreSQL access for the period tables

Version: 1.0.0
- One shared SQLAlchemy engine per process (lazy, lock-guarded)
- Pool settings from config (DB_POOL_SIZE / DB_POOL_RECYCLE)
- Reads the period and business-line tables as DataFrames over a single connection
"""

import logging
import threading
import time
from typing import Dict, Optional, Tuple

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import QueuePool

from .config import config

logger = logging.getLogger(__name__)

DRIVER_NAME = "postgresql+psycopg2"

_engine: Optional[Engine] = None
_engine_lock = threading.Lock()


def build_connection_url(db_config: Dict) -> URL:
    """SQLAlchemy URL for the configured PostgreSQL database; sslmode goes in the query."""
    query = {"sslmode": db_config["sslmode"]} if db_config.get("sslmode") else {}
    return URL.create(
        DRIVER_NAME,
        username=db_config["user"],
        password=str(db_config["password"]),
        host=db_config["host"],
        port=int(db_config["port"]),
        database=db_config["database"],
        query=query,
    )


def get_db_engine() -> Engine:
    """Shared engine; created on first use so the JSON source never needs DB settings."""
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()
    return _engine


def _create_engine() -> Engine:
    url = build_connection_url(config.get_db_config())
    pool_size = config.get_app_setting("DB_POOL_SIZE", 5)
    pool_recycle = config.get_app_setting("DB_POOL_RECYCLE", 3600)

    logger.info(f"🔌 Connecting to {url.render_as_string(hide_password=True)}")

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
    )


def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Ping the database.

    Returns:
        (True, None) when reachable, else (False, message for the user)
    """
    try:
        with get_db_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except ValueError as e:
        # Raised by config when PG settings are incomplete
        return False, str(e)
    except OperationalError as e:
        logger.error(f"❌ PostgreSQL unreachable: {e}")
        return False, "Cannot reach the PostgreSQL server. Check PGHOST/PGPORT and network access."
    except SQLAlchemyError as e:
        logger.error(f"❌ PostgreSQL error: {e}")
        return False, f"Database error: {e}"


def reset_db_engine():
    """Dispose pooled connections; the next read reconnects."""
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
            logger.info("🔄 Database engine disposed")


def read_sql_frames(queries: Dict[str, str]) -> Dict[str, pd.DataFrame]:
    """
    Run several SELECTs on one connection.

    Args:
        queries: name -> SQL text

    Returns:
        name -> DataFrame, in the same order
    """
    frames = {}
    start = time.perf_counter()
    with get_db_engine().connect() as conn:
        for name, sql in queries.items():
            frames[name] = pd.read_sql(text(sql), conn)
    logger.debug(
        f"Read {', '.join(f'{k}={len(v)}' for k, v in frames.items())} "
        f"in {time.perf_counter() - start:.3f}s"
    )
    return frames


__all__ = [
    'build_connection_url',
    'check_db_connection',
    'get_db_engine',
    'read_sql_frames',
    'reset_db_engine',
]
