"""Listing synchronization: pull listings from Guesty and upsert them by guesty_id."""

from typing import Any

import structlog
from sqlalchemy.engine import Engine

from sync_guesty.config import GUESTY_LISTINGS_PAGE_SIZE, GUESTY_MAX_LISTING_PAGES
from sync_guesty.db.writers.listings import upsert_listing
from sync_guesty.errors import MalformedRecordError, PageLimitExceededError
from sync_guesty.metrics import records_skipped, records_synced, sync_duration, sync_total
from sync_guesty.network.auth import get_valid_access_token
from sync_guesty.network.client import ListingPage, fetch_listing, fetch_listing_page
from sync_guesty.normalizers.listings import map_listing

logger = structlog.get_logger(__name__)


def has_more_pages(result: ListingPage) -> bool:
    """
    Decide whether another page should be requested.

    A reported page count is authoritative. Without one, a full page means
    there may be more and a short page means this was the last.
    """
    if result.pages is not None:
        return result.page < result.pages
    return len(result.results) >= result.limit


def _upsert_page(engine: Engine, host_id: int, result: ListingPage) -> list[dict[str, Any]]:
    """Map and upsert one page in a single transaction, skipping malformed records."""
    stored: list[dict[str, Any]] = []
    skipped = 0

    with engine.begin() as conn:
        for raw in result.results:
            try:
                mapped = map_listing(raw, host_id)
            except MalformedRecordError as e:
                skipped += 1
                logger.warning(
                    "listing_record_skipped", host_id=host_id, page=result.page, reason=str(e)
                )
                continue
            stored.append(upsert_listing(conn, mapped))

    if skipped:
        records_skipped.labels(entity_type="listings").inc(skipped)
    records_synced.labels(entity_type="listings").inc(len(stored))
    return stored


def sync_all_listings(
    engine: Engine,
    host_id: int,
    page_size: int = GUESTY_LISTINGS_PAGE_SIZE,
    max_pages: int = GUESTY_MAX_LISTING_PAGES,
) -> list[dict[str, Any]]:
    """
    Sync every listing of a host from Guesty.

    Pages through the listing collection starting at page 1. Each page is
    written in its own transaction, so a failure on page N keeps pages
    1..N-1; a retried job converges because every write is an upsert.

    Args:
        engine (Engine): SQLAlchemy engine.
        host_id (int): Host whose listings are synced.
        page_size (int): Listings requested per page.
        max_pages (int): Hard cap on pages fetched in one run.

    Returns:
        list[dict]: Stored listing rows in vendor page order.

    Raises:
        PageLimitExceededError: The vendor kept reporting more pages past max_pages.
    """
    with sync_duration.labels(entity_type="listings").time():
        try:
            token = get_valid_access_token(engine, host_id)
            listings: list[dict[str, Any]] = []
            page = 1

            while True:
                if page > max_pages:
                    raise PageLimitExceededError(host_id, max_pages)

                result = fetch_listing_page(token, page=page, limit=page_size)
                if not result.results:
                    break

                listings.extend(_upsert_page(engine, host_id, result))
                logger.debug(
                    "listing_page_synced",
                    host_id=host_id,
                    page=page,
                    pages=result.pages,
                    received=len(result.results),
                )

                if not has_more_pages(result):
                    break
                page += 1

            sync_total.labels(entity_type="listings", status="success").inc()
            logger.info("listings_synced", host_id=host_id, count=len(listings), pages=page)
            return listings
        except Exception:
            sync_total.labels(entity_type="listings", status="failure").inc()
            raise


def sync_one_listing(
    engine: Engine, host_id: int, guesty_listing_id: str
) -> dict[str, Any]:
    """
    Sync a single listing by its Guesty ID.

    The stored guesty_id is always the requested one, even if the payload
    reports a different identifier.

    Args:
        engine (Engine): SQLAlchemy engine.
        host_id (int): Host that owns the listing.
        guesty_listing_id (str): Guesty listing ID to fetch.

    Returns:
        dict: The stored listing row.
    """
    with sync_duration.labels(entity_type="listing").time():
        try:
            token = get_valid_access_token(engine, host_id)
            raw = fetch_listing(token, guesty_listing_id)
            mapped = map_listing(raw, host_id, guesty_id=guesty_listing_id)

            with engine.begin() as conn:
                stored = upsert_listing(conn, mapped)

            records_synced.labels(entity_type="listing").inc()
            sync_total.labels(entity_type="listing", status="success").inc()
            logger.info(
                "listing_synced",
                host_id=host_id,
                guesty_id=guesty_listing_id,
                listing_id=stored["id"],
            )
            return stored
        except Exception:
            sync_total.labels(entity_type="listing", status="failure").inc()
            raise
