"""
Client for the Guesty open API.

Thin, stateless wrappers around authenticated GET requests. Each call makes
exactly one HTTP request and either returns parsed data or raises
VendorRequestError; retrying is left to the job queue so a failed page never
gets half-applied twice.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, cast
from urllib.parse import quote

import requests
import structlog

from sync_guesty import config
from sync_guesty.errors import VendorRequestError
from sync_guesty.metrics import api_latency, api_requests
from sync_guesty.schemas.guesty import (
    GuestyAvailabilityDay,
    GuestyAvailabilityResponse,
    GuestyListing,
    GuestyListingPage,
)

logger = structlog.get_logger(__name__)

# Guesty has used each of these envelope keys for collection responses
LISTING_PAGE_KEYS = ("results", "data")
AVAILABILITY_DAY_KEYS = ("results", "days", "data")


@dataclass
class ListingPage:
    """One page of the listing collection."""

    page: int
    limit: int
    results: List[GuestyListing] = field(default_factory=list)
    pages: Optional[int] = None


def build_url(path: str) -> str:
    """Join a path onto the configured Guesty API base URL."""
    return f"{config.GUESTY_API_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


def _first_list(body: Mapping[str, Any], keys: tuple) -> List[Any]:
    """Return the first envelope key that holds a list, or an empty list."""
    for key in keys:
        value = body.get(key)
        if isinstance(value, list):
            return value
    return []


def _page_count(value: Any) -> Optional[int]:
    """Parse the vendor's page count; anything unusable means 'not reported'."""
    if isinstance(value, bool):
        return None
    try:
        pages = int(value)
    except (TypeError, ValueError):
        return None
    return pages if pages > 0 else None


def fetch_json(
    endpoint: str,
    path: str,
    token: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Issue one authenticated GET against the Guesty API.

    Args:
        endpoint (str): Logical endpoint name used in logs and metrics.
        path (str): Path relative to GUESTY_API_BASE_URL.
        token (str): Bearer token for Guesty authentication.
        params (dict, optional): Query parameters.

    Returns:
        Any: Parsed JSON body.

    Raises:
        VendorRequestError: On transport errors, timeouts, non-2xx responses or
            a body that is not JSON.
    """
    url = build_url(path)
    headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    logger.debug("guesty_request", endpoint=endpoint, params=params)

    start_time = time.time()
    try:
        res = requests.get(
            url, headers=headers, params=params, timeout=config.GUESTY_REQUEST_TIMEOUT
        )
    except requests.RequestException as err:
        api_requests.labels(endpoint=endpoint, status_code="error").inc()
        logger.warning("guesty_request_error", endpoint=endpoint, error=str(err))
        raise VendorRequestError(endpoint, detail=str(err)) from err
    finally:
        api_latency.labels(endpoint=endpoint).observe(time.time() - start_time)

    api_requests.labels(endpoint=endpoint, status_code=str(res.status_code)).inc()

    if not res.ok:
        logger.warning(
            "guesty_request_failed",
            endpoint=endpoint,
            status_code=res.status_code,
            response_text=res.text[:500],
        )
        raise VendorRequestError(endpoint, status_code=res.status_code, detail=res.text[:500])

    try:
        return res.json()
    except ValueError as err:
        raise VendorRequestError(
            endpoint, status_code=res.status_code, detail="response body is not JSON"
        ) from err


def fetch_listing_page(token: str, page: int, limit: int) -> ListingPage:
    """
    Fetch one page of the host's listing collection.

    Args:
        token (str): Bearer token.
        page (int): 1-based page number.
        limit (int): Page size requested.

    Returns:
        ListingPage: Raw listings plus the vendor-reported page count (if any).
    """
    body = fetch_json("listings", "listings", token, params={"page": page, "limit": limit})
    if not isinstance(body, dict):
        raise VendorRequestError("listings", detail=f"unexpected body type {type(body).__name__}")
    envelope = cast(GuestyListingPage, body)

    return ListingPage(
        page=page,
        limit=limit,
        results=cast(List[GuestyListing], _first_list(envelope, LISTING_PAGE_KEYS)),
        pages=_page_count(envelope.get("pages")),
    )


def fetch_listing(token: str, guesty_listing_id: str) -> GuestyListing:
    """
    Fetch a single listing by its Guesty ID.

    Args:
        token (str): Bearer token.
        guesty_listing_id (str): Guesty listing ID.

    Returns:
        GuestyListing: Raw listing payload.
    """
    body = fetch_json("listing", f"listings/{quote(guesty_listing_id, safe='')}", token)
    if not isinstance(body, dict):
        raise VendorRequestError("listing", detail=f"unexpected body type {type(body).__name__}")
    return cast(GuestyListing, body)


def fetch_availability(
    token: str, guesty_listing_id: str, start: date, end: date
) -> List[GuestyAvailabilityDay]:
    """
    Fetch per-day availability and pricing for a listing.

    Args:
        token (str): Bearer token.
        guesty_listing_id (str): Guesty listing ID.
        start (date): First day of the window.
        end (date): Last day of the window.

    Returns:
        List[GuestyAvailabilityDay]: Raw day records in vendor order.
    """
    params = {
        "listingId": guesty_listing_id,
        "startDate": start.isoformat(),
        "endDate": end.isoformat(),
    }
    body = fetch_json("availability", config.GUESTY_AVAILABILITY_PATH, token, params=params)

    if isinstance(body, list):
        return cast(List[GuestyAvailabilityDay], body)
    if not isinstance(body, dict):
        raise VendorRequestError(
            "availability", detail=f"unexpected body type {type(body).__name__}"
        )
    envelope = cast(GuestyAvailabilityResponse, body)
    return cast(List[GuestyAvailabilityDay], _first_list(envelope, AVAILABILITY_DAY_KEYS))
