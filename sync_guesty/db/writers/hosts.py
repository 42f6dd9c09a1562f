from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.engine import Connection

from sync_guesty.models.hosts import Host
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def update_host_tokens(
    conn: Connection,
    host_id: int,
    access_token: str,
    refresh_token: Optional[str],
    token_type: Optional[str],
    scope: Optional[str],
    expires_at: datetime,
) -> Optional[str]:
    """
    Store a refreshed token set for a host.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        host_id (int): Host primary key.
        access_token (str): New bearer token.
        refresh_token (str | None): Refresh token to keep for the next refresh.
        token_type (str | None): Token type reported by Guesty.
        scope (str | None): Granted scope reported by Guesty.
        expires_at (datetime): Absolute expiry of the new access token.

    Returns:
        Optional[str]: The access token as persisted, or None if no row was updated.
    """
    stmt = (
        update(Host)
        .where(Host.id == host_id)
        .values(
            guesty_access_token=access_token,
            guesty_refresh_token=refresh_token,
            guesty_token_type=token_type,
            guesty_scope=scope,
            guesty_expires_at=expires_at,
            updated_at=utc_now(),
        )
        .returning(Host.guesty_access_token)
    )

    persisted = conn.execute(stmt).scalar_one_or_none()
    logger.debug("host_tokens_updated", host_id=host_id, persisted=persisted is not None)
    return persisted
