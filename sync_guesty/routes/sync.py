import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine

from sync_guesty.db.readers.hosts import host_exists
from sync_guesty.db.readers.listings import get_listing
from sync_guesty.dependencies import get_db_engine, get_scheduler
from sync_guesty.jobs.scheduler import SyncScheduler

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/hosts/{host_id}/sync", status_code=status.HTTP_202_ACCEPTED)
def trigger_host_sync(
    host_id: int,
    engine: Engine = Depends(get_db_engine),
    scheduler: SyncScheduler = Depends(get_scheduler),
) -> dict[str, str]:
    """
    Manually trigger a full listing sync for a host.

    Every call enqueues an independent job; repeated calls are not collapsed.

    Args:
        host_id: Host to sync

    Returns:
        dict: Message and the ID of the enqueued job
    """
    try:
        with engine.connect() as conn:
            if not host_exists(conn, host_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Host {host_id} not found",
                )

        job_id = scheduler.trigger_listing_sync(host_id)
        logger.info("sync_triggered", host_id=host_id, job_id=job_id)

        return {"message": f"Listing sync enqueued for host {host_id}", "job_id": job_id}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("sync_trigger_failed", host_id=host_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/listings/{listing_id}/calendar/sync", status_code=status.HTTP_202_ACCEPTED)
def trigger_calendar_sync(
    listing_id: int,
    engine: Engine = Depends(get_db_engine),
    scheduler: SyncScheduler = Depends(get_scheduler),
) -> dict[str, str]:
    """
    Manually trigger a calendar sync for a listing.

    Args:
        listing_id: Local listing ID

    Returns:
        dict: Message and the ID of the enqueued job
    """
    try:
        with engine.connect() as conn:
            listing = get_listing(conn, listing_id)

        if listing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Listing {listing_id} not found",
            )

        job_id = scheduler.trigger_calendar_sync(listing_id)
        logger.info("calendar_sync_triggered", listing_id=listing_id, job_id=job_id)

        return {"message": f"Calendar sync enqueued for listing {listing_id}", "job_id": job_id}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("calendar_sync_trigger_failed", listing_id=listing_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
