"""
SQLAlchemy engine singleton with production-ready connection pooling.

The API process and every Celery worker process create one engine from
DATABASE_URL. Sync jobs receive it explicitly rather than importing it, so
tests can hand them a mock.
"""

from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from sync_guesty.config import DATABASE_URL


def create_db_engine(url: str) -> Engine:
    """
    Create an engine with the pool settings used in production.

    Args:
        url: SQLAlchemy database URL (postgresql+psycopg2://...)

    Returns:
        Engine: Configured SQLAlchemy engine (no connection is opened yet)
    """
    return create_engine(
        url,
        future=True,
        pool_size=10,  # Number of connections to maintain in the pool
        max_overflow=20,  # Additional connections when pool is exhausted
        pool_pre_ping=True,  # Verify connections before using (detect stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False,
    )


if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set.")

engine: Engine = create_db_engine(DATABASE_URL)


def check_engine_health(db_engine: Optional[Engine] = None) -> bool:
    """
    Check if the database is reachable.

    Used by the /ready endpoint and by the integration test fixtures.

    Args:
        db_engine: Engine to probe (defaults to the module singleton)

    Returns:
        bool: True if a trivial query succeeds, False otherwise
    """
    try:
        with (db_engine or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
