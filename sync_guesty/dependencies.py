"""
FastAPI dependency injection providers.

Routes never import the engine or the scheduler directly; they receive them
through these providers, which tests replace via app.dependency_overrides.

Testing Example:
    >>> from unittest.mock import Mock
    >>> from fastapi.testclient import TestClient
    >>>
    >>> app.dependency_overrides[get_db_engine] = lambda: Mock(spec=Engine)
    >>> app.dependency_overrides[get_scheduler] = lambda: mock_scheduler
    >>> client = TestClient(app)
"""

from __future__ import annotations

from typing import Generator, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy.engine import Engine

from sync_guesty.db.engine import engine
from sync_guesty.jobs.scheduler import SyncScheduler


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide the database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine
    """
    yield engine


def get_scheduler(request: Request) -> SyncScheduler:
    """
    Provide the job scheduler built at application startup.

    Raises:
        HTTPException: 503 if the scheduler has not been initialized
    """
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job scheduler is not available",
        )
    return scheduler


def get_optional_scheduler(request: Request) -> Optional[SyncScheduler]:
    """Like get_scheduler, but None instead of 503 for routes that must always answer."""
    return getattr(request.app.state, "scheduler", None)
