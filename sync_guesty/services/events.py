"""
Routing of inbound Guesty webhook events to sync jobs.

Webhooks only tell us that something changed. The router turns a listing
event into a single-listing sync and a reservation event into a calendar sync
of the affected listing, then lets the job queue do the work.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import structlog
from sqlalchemy.engine import Engine

from sync_guesty.db.readers.listings import get_listing_id_by_guesty_id
from sync_guesty.metrics import webhook_events
from sync_guesty.schemas.jobs import JobKind
from sync_guesty.services.host_cache import resolve_host_id

if TYPE_CHECKING:
    from sync_guesty.jobs.scheduler import SyncScheduler

logger = structlog.get_logger(__name__)

LISTING_EVENTS = frozenset({"listing.created", "listing.updated"})
RESERVATION_EVENTS = frozenset(
    {"reservation.created", "reservation.updated", "reservation.cancelled"}
)

ACCOUNT_ID_PATHS = (
    "accountId",
    "account_id",
    "integrationId",
    "integration_id",
    "account",
    "accountID",
)
LISTING_ID_PATHS = (
    "listing._id",
    "listing.id",
    "listingId",
    "listing_id",
    "reservation.listing._id",
    "reservation.listing.id",
    "reservation.listingId",
    "reservation.listing_id",
    "_id",
    "id",
)


def _lookup(event: dict[str, Any], path: str) -> Any:
    value: Any = event
    for key in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _first_present(event: dict[str, Any], paths: tuple[str, ...]) -> Optional[str]:
    """
    Return the first candidate that is present, as a string.

    Presence is "not null": an empty value at a higher-priority path still
    wins, and is then rejected by the caller as unusable.
    """
    for path in paths:
        value = _lookup(event, path)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        return str(value).strip()
    return None


def get_event_type(event: dict[str, Any]) -> str:
    value = event.get("event")
    if value is None:
        value = event.get("type")
    return "" if value is None else str(value)


def extract_account_id(event: dict[str, Any]) -> Optional[str]:
    return _first_present(event, ACCOUNT_ID_PATHS) or None


def extract_guesty_listing_id(event: dict[str, Any]) -> Optional[str]:
    return _first_present(event, LISTING_ID_PATHS) or None


def dispatch_event(
    event: dict[str, Any], scheduler: SyncScheduler, engine: Engine
) -> Optional[str]:
    """
    Enqueue the sync job an event calls for.

    Args:
        event: Decoded webhook body
        scheduler: Job scheduler to enqueue on
        engine: SQLAlchemy engine used to resolve hosts and listings

    Returns:
        Optional[str]: Job ID, or None when the event was ignored or unresolvable
    """
    event_type = get_event_type(event)
    if event_type not in LISTING_EVENTS and event_type not in RESERVATION_EVENTS:
        logger.info("webhook_event_ignored", event_type=event_type or None)
        webhook_events.labels(event_type=event_type or "unknown", outcome="ignored").inc()
        return None

    account_id = extract_account_id(event)
    guesty_listing_id = extract_guesty_listing_id(event)
    if not account_id or not guesty_listing_id:
        logger.warning(
            "webhook_event_incomplete",
            event_type=event_type,
            guesty_account_id=account_id,
            guesty_listing_id=guesty_listing_id,
        )
        webhook_events.labels(event_type=event_type, outcome="dropped").inc()
        return None

    with engine.connect() as conn:
        host_id = resolve_host_id(account_id, conn)
        listing_id = None
        if host_id is not None and event_type in RESERVATION_EVENTS:
            listing_id = get_listing_id_by_guesty_id(conn, guesty_listing_id, host_id=host_id)

    if host_id is None:
        webhook_events.labels(event_type=event_type, outcome="dropped").inc()
        return None

    if event_type in LISTING_EVENTS:
        job_id = scheduler.enqueue(
            JobKind.SYNC_SINGLE_LISTING,
            {"host_id": host_id, "guesty_listing_id": guesty_listing_id},
        )
    else:
        if listing_id is None:
            logger.warning(
                "webhook_listing_unknown",
                event_type=event_type,
                host_id=host_id,
                guesty_listing_id=guesty_listing_id,
            )
            webhook_events.labels(event_type=event_type, outcome="dropped").inc()
            return None
        job_id = scheduler.enqueue(JobKind.SYNC_CALENDAR, {"listing_id": listing_id})

    logger.info(
        "webhook_event_dispatched",
        event_type=event_type,
        host_id=host_id,
        guesty_listing_id=guesty_listing_id,
        job_id=job_id,
    )
    webhook_events.labels(event_type=event_type, outcome="enqueued").inc()
    return job_id


def handle_webhook_event(
    event: Any, scheduler: SyncScheduler, engine: Engine
) -> Optional[str]:
    """
    Webhook boundary: dispatch an event and never raise.

    Guesty retries webhooks that do not get a 2xx, and a retry cannot fix a
    payload we fail to handle, so every failure is logged and swallowed here.

    Args:
        event: Decoded webhook body (anything that is not a dict is treated as {})
        scheduler: Job scheduler to enqueue on
        engine: SQLAlchemy engine

    Returns:
        Optional[str]: Job ID when a job was enqueued
    """
    if not isinstance(event, dict):
        event = {}

    try:
        return dispatch_event(event, scheduler, engine)
    except Exception as e:
        event_type = get_event_type(event)
        logger.exception("webhook_processing_failed", event_type=event_type, error=str(e))
        webhook_events.labels(event_type=event_type or "unknown", outcome="error").inc()
        return None
