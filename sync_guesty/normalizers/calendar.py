from decimal import Decimal
from typing import Any, Dict, Optional

from sync_guesty.errors import MalformedRecordError
from sync_guesty.normalizers.listings import as_int, as_price, first_value
from sync_guesty.utils.datetime import to_utc_date

PRICE_PATHS = ("price", "nightlyPrice", "basePrice", "defaultDailyPrice")
MIN_STAY_PATHS = ("minimumStay", "minNights", "minStay")

DEFAULT_MIN_STAY = 1


def _positive_int(value: Any) -> Optional[int]:
    number = as_int(value)
    return number if number is not None and number >= 1 else None


def resolve_available(raw: Dict[str, Any]) -> bool:
    """
    Decide availability for one day.

    An explicit boolean wins; otherwise a status string counts as available
    only when it equals "available". With neither, the day is open.
    """
    available = raw.get("available")
    if isinstance(available, bool):
        return available
    status = raw.get("status")
    if status is not None:
        return status == "available"
    return True


def map_calendar_day(
    raw: Any, listing_id: int, fallback_price: Optional[Decimal] = None
) -> Dict[str, Any]:
    """
    Map a raw Guesty availability day onto calendar_days columns.

    Args:
        raw: Day object as returned by the availability endpoint
        listing_id: Local listing the day belongs to
        fallback_price: Listing base price used when the day carries no price

    Returns:
        dict: listing_id, date, available, price and min_stay

    Raises:
        MalformedRecordError: The day is not an object or has no usable date
    """
    if not isinstance(raw, dict):
        raise MalformedRecordError(f"Calendar day is not an object: {type(raw).__name__}")

    day = to_utc_date(raw.get("date"))
    if day is None:
        raise MalformedRecordError(f"Calendar day has no usable date: {raw.get('date')!r}")

    price = first_value(raw, PRICE_PATHS, as_price)
    if price is None:
        price = as_price(fallback_price)
    if price is None:
        price = Decimal("0")

    min_stay = first_value(raw, MIN_STAY_PATHS, _positive_int) or DEFAULT_MIN_STAY

    return {
        "listing_id": listing_id,
        "date": day,
        "available": resolve_available(raw),
        "price": price,
        "min_stay": min_stay,
    }
