import json
from typing import Any

import structlog
from sqlalchemy.engine import Connection

from sync_guesty.config import DEBUG
from sync_guesty.db.writers._upsert import upsert_returning
from sync_guesty.models.listings import Listing
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Everything the vendor owns; id, guesty_id and created_at never change on update
LISTING_SYNC_COLUMNS = [
    "host_id",
    "title",
    "description",
    "property_type",
    "bedrooms",
    "bathrooms",
    "beds",
    "max_guests",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
    "latitude",
    "longitude",
    "photos",
    "amenities",
    "base_price",
]


def upsert_listing(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    """
    Upsert one mapped listing keyed by guesty_id, updating only if a column changed.

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction)
        data: Mapped listing columns, as produced by normalizers.listings.map_listing

    Returns:
        dict: The stored listing row
    """
    now = utc_now()
    row = {**data, "created_at": now, "updated_at": now}

    if DEBUG:
        logger.debug("listing_upsert_row", row=json.dumps(row, default=str))

    stored, inserted = upsert_returning(
        conn,
        table=Listing,
        row=row,
        conflict_columns=["guesty_id"],
        distinct_columns=LISTING_SYNC_COLUMNS,
    )

    logger.debug(
        "listing_upserted",
        listing_id=stored["id"],
        guesty_id=stored["guesty_id"],
        created=inserted,
    )
    return stored
