from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_guesty.models.hosts import Host


def host_exists(conn: Connection, host_id: int) -> bool:
    """
    Check if a host exists in the database.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        host_id (int): Host primary key.

    Returns:
        bool: True if the host exists, False otherwise.
    """
    result = conn.execute(select(Host.id).where(Host.id == host_id))
    return result.fetchone() is not None


def get_host_credentials(
    conn: Connection, host_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch the stored Guesty token set for a host.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        host_id (int): Host primary key.
        for_update (bool): Lock the row until the surrounding transaction ends.

    Returns:
        Optional[dict]: access_token, refresh_token, token_type, scope and
        expires_at, or None if the host does not exist.
    """
    stmt = select(
        Host.guesty_access_token.label("access_token"),
        Host.guesty_refresh_token.label("refresh_token"),
        Host.guesty_token_type.label("token_type"),
        Host.guesty_scope.label("scope"),
        Host.guesty_expires_at.label("expires_at"),
    ).where(Host.id == host_id)

    if for_update:
        stmt = stmt.with_for_update()

    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_syncable_host_ids(conn: Connection) -> list[int]:
    """
    List hosts that are linked to a Guesty account and hold a refresh token.

    Args:
        conn (Connection): SQLAlchemy DB connection.

    Returns:
        list[int]: Host IDs in ascending order.
    """
    result = conn.execute(
        select(Host.id)
        .where(Host.guesty_account_id.is_not(None))
        .where(Host.guesty_refresh_token.is_not(None))
        .order_by(Host.id)
    )
    return list(result.scalars().all())


def get_host_id_by_account(conn: Connection, guesty_account_id: str) -> Optional[int]:
    """
    Resolve a Guesty account ID to the host that owns it.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        guesty_account_id (str): Account ID as sent by Guesty.

    Returns:
        Optional[int]: Host ID or None if no host is linked to the account.
    """
    result = conn.execute(select(Host.id).where(Host.guesty_account_id == guesty_account_id))
    row = result.fetchone()
    return row[0] if row else None


def get_linked_account_map(conn: Connection) -> dict[str, int]:
    """
    Map every linked Guesty account ID to its host ID.

    Args:
        conn (Connection): SQLAlchemy DB connection.

    Returns:
        dict[str, int]: guesty_account_id -> host id
    """
    result = conn.execute(
        select(Host.guesty_account_id, Host.id).where(Host.guesty_account_id.is_not(None))
    )
    return {account_id: host_id for account_id, host_id in result}
