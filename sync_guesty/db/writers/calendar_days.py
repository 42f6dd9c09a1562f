from typing import Any

import structlog
from sqlalchemy.engine import Connection

from sync_guesty.db.writers._upsert import upsert_returning
from sync_guesty.models.calendar_days import CalendarDay
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def upsert_calendar_day(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    """
    Upsert one calendar day keyed by (listing_id, date).

    Args:
        conn: Active SQLAlchemy connection (caller owns the transaction)
        data: Mapped day with listing_id, date, available, price and min_stay

    Returns:
        dict: The stored calendar day row
    """
    now = utc_now()

    stored, _ = upsert_returning(
        conn,
        table=CalendarDay,
        row={**data, "created_at": now, "updated_at": now},
        conflict_columns=["listing_id", "date"],
        distinct_columns=["available", "price", "min_stay"],
    )
    return stored
