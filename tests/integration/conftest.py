"""
Shared fixtures for integration tests against a real PostgreSQL database.

The whole directory is skipped when DATABASE_URL is unreachable. Tables are
created from the ORM metadata, which mirrors the Alembic revisions.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Generator

import pytest
from sqlalchemy import delete, insert
from sqlalchemy.schema import CreateSchema

from sync_guesty.config import SCHEMA
from sync_guesty.db.engine import check_engine_health, engine
from sync_guesty.models.base import Base
from sync_guesty.models.hosts import Host
from sync_guesty.utils.datetime import utc_now


@pytest.fixture(scope="session", autouse=True)
def database_schema() -> None:
    if not check_engine_health(engine):
        pytest.skip("PostgreSQL is not reachable at DATABASE_URL")

    with engine.begin() as conn:
        conn.execute(CreateSchema(SCHEMA, if_not_exists=True))
        Base.metadata.create_all(conn)


@pytest.fixture
def test_host(request: Any) -> Generator[int, None, None]:
    """
    Create a linked host holding a still-valid token.

    The Guesty account ID comes from the test parameter when given. Deleting
    the host cascades to its listings and calendar days.
    """
    account_id = getattr(request, "param", "acct-integration")

    with engine.begin() as conn:
        host_id = conn.execute(
            insert(Host)
            .values(
                guesty_account_id=account_id,
                guesty_access_token="stored-access-token",
                guesty_refresh_token="stored-refresh-token",
                guesty_token_type="Bearer",
                guesty_scope="open-api",
                guesty_expires_at=utc_now() + timedelta(hours=6),
            )
            .returning(Host.id)
        ).scalar_one()

    yield host_id

    with engine.begin() as conn:
        conn.execute(delete(Host).where(Host.id == host_id))
