from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from sync_guesty.models.listings import Listing


def get_listing(conn: Connection, listing_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch the columns a calendar sync needs for one listing.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        listing_id (int): Listing primary key.

    Returns:
        Optional[dict]: id, guesty_id, host_id and base_price, or None if missing.
    """
    result = conn.execute(
        select(Listing.id, Listing.guesty_id, Listing.host_id, Listing.base_price).where(
            Listing.id == listing_id
        )
    )
    row = result.mappings().fetchone()
    return dict(row) if row else None


def get_listing_id_by_guesty_id(
    conn: Connection, guesty_id: str, host_id: Optional[int] = None
) -> Optional[int]:
    """
    Resolve a Guesty listing ID to the local listing ID.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        guesty_id (str): Listing ID assigned by Guesty.
        host_id (int | None): When given, only match a listing owned by this host.

    Returns:
        Optional[int]: Local listing ID or None.
    """
    stmt = select(Listing.id).where(Listing.guesty_id == guesty_id)
    if host_id is not None:
        stmt = stmt.where(Listing.host_id == host_id)

    row = conn.execute(stmt).fetchone()
    return row[0] if row else None
