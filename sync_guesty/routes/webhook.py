"""Guesty webhook receiver route."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from sync_guesty.dependencies import get_db_engine, get_optional_scheduler
from sync_guesty.jobs.scheduler import SyncScheduler
from sync_guesty.metrics import webhook_events
from sync_guesty.services.events import get_event_type, handle_webhook_event

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post("/webhooks/guesty")
async def receive_guesty_webhook(
    request: Request,
    engine: Engine = Depends(get_db_engine),
    scheduler: Optional[SyncScheduler] = Depends(get_optional_scheduler),
) -> JSONResponse:
    """
    Accept a Guesty webhook and enqueue the sync it calls for.

    Always answers 200 {"ok": true}: a body that is not valid JSON is treated
    as an empty event, and unresolvable or failing events are logged and
    dropped.

    Expected payload (fields vary by event):
        {
            "event": "reservation.updated",
            "accountId": "5f1a...",
            "reservation": {"listingId": "6a2b..."}
        }
    """
    try:
        payload: Any = await request.json()
    except ValueError:
        logger.warning("webhook_invalid_json")
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    event_type = get_event_type(payload) or None
    logger.info("webhook_received", event_type=event_type)

    if scheduler is None:
        logger.warning("webhook_dropped", reason="scheduler_unavailable", event_type=event_type)
        webhook_events.labels(event_type=event_type or "unknown", outcome="dropped").inc()
        return JSONResponse(content={"ok": True})

    handle_webhook_event(payload, scheduler, engine)
    return JSONResponse(content={"ok": True})
