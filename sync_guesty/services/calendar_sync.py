"""Calendar synchronization: per-day availability, price and minimum stay."""

from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from sync_guesty.config import CALENDAR_WINDOW_MONTHS
from sync_guesty.db.readers.listings import get_listing
from sync_guesty.db.writers.calendar_days import upsert_calendar_day
from sync_guesty.errors import MalformedRecordError, NotFoundError, NotLinkedError
from sync_guesty.metrics import records_skipped, records_synced, sync_duration, sync_total
from sync_guesty.network.auth import get_valid_access_token
from sync_guesty.network.client import fetch_availability
from sync_guesty.normalizers.calendar import map_calendar_day
from sync_guesty.utils.datetime import calendar_window, utc_today

logger = structlog.get_logger(__name__)


def sync_calendar(
    engine: Engine, listing_id: int, today: Optional[date] = None
) -> list[dict[str, Any]]:
    """
    Sync the forward availability window of one listing.

    The window runs from the current UTC day to the same day
    CALENDAR_WINDOW_MONTHS later. Days outside the window are left alone.

    Args:
        engine (Engine): SQLAlchemy engine.
        listing_id (int): Local listing ID.
        today (date, optional): Window start; defaults to the current UTC day.

    Returns:
        list[dict]: Stored calendar day rows in vendor order.

    Raises:
        NotFoundError: The listing does not exist.
        NotLinkedError: The listing has no Guesty ID.
    """
    with sync_duration.labels(entity_type="calendar").time():
        try:
            with engine.connect() as conn:
                listing = get_listing(conn, listing_id)

            if listing is None:
                raise NotFoundError("listing", listing_id)
            if not listing["guesty_id"]:
                raise NotLinkedError(listing_id)

            token = get_valid_access_token(engine, listing["host_id"])
            start, end = calendar_window(today or utc_today(), CALENDAR_WINDOW_MONTHS)
            raw_days = fetch_availability(token, listing["guesty_id"], start, end)

            days: list[dict[str, Any]] = []
            skipped = 0
            with engine.begin() as conn:
                for raw in raw_days:
                    try:
                        mapped = map_calendar_day(raw, listing_id, listing["base_price"])
                    except MalformedRecordError as e:
                        skipped += 1
                        logger.debug("calendar_day_skipped", listing_id=listing_id, reason=str(e))
                        continue
                    days.append(upsert_calendar_day(conn, mapped))

            if skipped:
                records_skipped.labels(entity_type="calendar").inc(skipped)
            records_synced.labels(entity_type="calendar").inc(len(days))
            sync_total.labels(entity_type="calendar", status="success").inc()

            logger.info(
                "calendar_synced",
                listing_id=listing_id,
                start=start.isoformat(),
                end=end.isoformat(),
                days=len(days),
                skipped=skipped,
            )
            return days
        except Exception:
            sync_total.labels(entity_type="calendar", status="failure").inc()
            raise
