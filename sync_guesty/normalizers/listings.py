import json
import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

import structlog

from sync_guesty.config import DEBUG
from sync_guesty.errors import MalformedRecordError

logger = structlog.get_logger(__name__)

# Candidate paths per column, tried in order; the first usable value wins
ID_PATHS = ("_id", "id")
TITLE_PATHS = ("title", "name", "address.full")
DESCRIPTION_PATHS = ("description", "publicDescription.summary")
PROPERTY_TYPE_PATHS = ("propertyType", "propertyTypeCategory")
MAX_GUESTS_PATHS = ("maxGuests", "accommodates")
ADDRESS_LINE1_PATHS = ("address.street", "address.line1", "address.address1")
ADDRESS_LINE2_PATHS = ("address.apt", "address.line2", "address.address2")
CITY_PATHS = ("address.city",)
STATE_PATHS = ("address.state", "address.province")
POSTAL_CODE_PATHS = ("address.zip", "address.postalCode")
COUNTRY_PATHS = ("address.country",)
LATITUDE_PATHS = ("location.lat", "location.latitude", "geo.lat", "geo.latitude", "address.lat")
LONGITUDE_PATHS = (
    "location.lng",
    "location.longitude",
    "geo.lng",
    "geo.longitude",
    "address.lng",
)
PHOTO_PATHS = ("pictures", "images")
AMENITY_PATHS = ("amenities",)
BASE_PRICE_PATHS = ("basePrice", "defaultDailyPrice", "dailyRate", "prices.basePrice")

DEFAULT_TITLE = "Untitled listing"

# Column limits: INTEGER, NUMERIC(12,2) prices, NUMERIC(4,1) bathrooms
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
PRICE_LIMIT = Decimal("1e10")
PRICE_STEP = Decimal("0.01")
BATHROOMS_LIMIT = Decimal("1000")
BATHROOMS_STEP = Decimal("0.1")


def get_path(record: Dict[str, Any], path: str) -> Any:
    """Walk a dotted path through nested dicts; None if any hop is missing."""
    value: Any = record
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def as_int(value: Any) -> Optional[int]:
    """Coerce to an integer that fits a 32-bit INTEGER column."""
    number = _parse_int(value)
    if number is None or not INT32_MIN <= number <= INT32_MAX:
        return None
    return number


def as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a vendor number to an exact, non-negative Decimal.

    Floats are converted through their shortest decimal text, so 120.1 becomes
    Decimal("120.1") rather than the binary expansion of the float.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if not isinstance(value, (int, float, str, Decimal)):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not number.is_finite() or number < 0:
        return None
    return number


def _bounded_decimal(value: Any, limit: Decimal, step: Decimal) -> Optional[Decimal]:
    number = as_decimal(value)
    if number is None or number >= limit:
        return None
    # Rounding can carry up to the limit (9999999999.995)
    number = number.quantize(step, rounding=ROUND_HALF_UP)
    return number if number < limit else None


def as_price(value: Any) -> Optional[Decimal]:
    """Coerce to a price that fits NUMERIC(12,2), rounded half-up to cents."""
    return _bounded_decimal(value, PRICE_LIMIT, PRICE_STEP)


def as_bathrooms(value: Any) -> Optional[Decimal]:
    return _bounded_decimal(value, BATHROOMS_LIMIT, BATHROOMS_STEP)


def as_list(value: Any) -> Optional[List[Any]]:
    return value if isinstance(value, list) else None


def first_value(record: Dict[str, Any], paths: Iterable[str], coerce: Any) -> Any:
    """
    Resolve the first candidate path whose value survives coercion.

    Args:
        record: Raw vendor record
        paths: Candidate dotted paths in priority order
        coerce: One of the as_* coercers; returns None for unusable values

    Returns:
        The coerced value, or None if no candidate is usable
    """
    for path in paths:
        value = coerce(get_path(record, path))
        if value is not None:
            return value
    return None


def resolve_guesty_id(raw: Any) -> Optional[str]:
    """Return the vendor identifier of a raw listing, if it has one."""
    if not isinstance(raw, dict):
        return None
    return first_value(raw, ID_PATHS, as_str)


def map_listing(
    raw: Any, host_id: int, guesty_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Map a raw Guesty listing onto listing table columns.

    Args:
        raw: Listing object as returned by Guesty
        host_id: Host that owns the listing
        guesty_id: Force the upsert key (single-listing syncs use the requested ID)

    Returns:
        dict: Column values ready for upsert_listing()

    Raises:
        MalformedRecordError: The record is not an object or carries no identifier
    """
    if not isinstance(raw, dict):
        raise MalformedRecordError(f"Listing record is not an object: {type(raw).__name__}")

    resolved_id = guesty_id or resolve_guesty_id(raw)
    if not resolved_id:
        raise MalformedRecordError("Listing record has no _id or id")

    bathrooms = as_bathrooms(raw.get("bathrooms"))
    base_price = first_value(raw, BASE_PRICE_PATHS, as_price)

    mapped = {
        "guesty_id": resolved_id,
        "host_id": host_id,
        "title": first_value(raw, TITLE_PATHS, as_str) or DEFAULT_TITLE,
        "description": first_value(raw, DESCRIPTION_PATHS, as_str),
        "property_type": first_value(raw, PROPERTY_TYPE_PATHS, as_str),
        "bedrooms": as_int(raw.get("bedrooms")),
        "bathrooms": bathrooms,
        "beds": as_int(raw.get("beds")),
        "max_guests": first_value(raw, MAX_GUESTS_PATHS, as_int),
        "address_line1": first_value(raw, ADDRESS_LINE1_PATHS, as_str),
        "address_line2": first_value(raw, ADDRESS_LINE2_PATHS, as_str),
        "city": first_value(raw, CITY_PATHS, as_str),
        "state": first_value(raw, STATE_PATHS, as_str),
        "postal_code": first_value(raw, POSTAL_CODE_PATHS, as_str),
        "country": first_value(raw, COUNTRY_PATHS, as_str),
        "latitude": first_value(raw, LATITUDE_PATHS, as_float),
        "longitude": first_value(raw, LONGITUDE_PATHS, as_float),
        "photos": first_value(raw, PHOTO_PATHS, as_list) or [],
        "amenities": first_value(raw, AMENITY_PATHS, as_list) or [],
        "base_price": base_price if base_price is not None else Decimal("0"),
    }

    if DEBUG:
        logger.debug("listing_mapped", mapped=json.dumps(mapped, default=str))

    return mapped
