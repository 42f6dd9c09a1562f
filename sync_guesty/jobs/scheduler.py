"""
Sync job queue on Celery with a Redis broker.

Each JobKind is one Celery task named after the kind, bound to exactly one
handler on SyncScheduler. Tasks are acknowledged late and rejected back to the
broker when a worker dies, so a job runs at least once; handlers are
idempotent upserts, so running twice is safe.

The recurring full sync lives in the beat schedule under a fixed key, which
is what keeps it a singleton across restarts.
"""

import random
from typing import Any, Callable, Optional

import structlog
from celery import Celery, Task
from celery.schedules import crontab
from sqlalchemy.engine import Engine

from sync_guesty.config import (
    REDIS_URL,
    SYNC_JOB_MAX_RETRIES,
    SYNC_JOB_RETRY_BACKOFF_MAX,
    SYNC_JOB_SOFT_TIME_LIMIT,
    SYNC_JOB_TIME_LIMIT,
)
from sync_guesty.db.readers.hosts import get_syncable_host_ids
from sync_guesty.errors import RETRYABLE_ERRORS
from sync_guesty.metrics import job_attempts, jobs_enqueued
from sync_guesty.schemas.jobs import JOB_PAYLOADS, JobKind
from sync_guesty.services.calendar_sync import sync_calendar
from sync_guesty.services.listing_sync import sync_all_listings, sync_one_listing

logger = structlog.get_logger(__name__)

RECURRING_JOB_ID = "sync-all-hosts-recurring"
# Every 6 hours on the hour, UTC ("0 */6 * * *")
RECURRING_SCHEDULE = crontab(minute=0, hour="*/6")

RETRY_BASE_DELAY_SECONDS = 10


def create_celery_app(broker_url: Optional[str] = REDIS_URL) -> Celery:
    """
    Build the Celery application used by both the API (producer) and workers.

    Args:
        broker_url: Redis broker URL

    Returns:
        Celery: Configured application
    """
    app = Celery("sync_guesty", broker=broker_url)
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        task_ignore_result=True,
        task_track_started=True,
        task_time_limit=SYNC_JOB_TIME_LIMIT,
        task_soft_time_limit=SYNC_JOB_SOFT_TIME_LIMIT,
        worker_prefetch_multiplier=1,  # long jobs; do not hoard messages
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_hijack_root_logger=False,
    )
    return app


def retry_delay(retries: int, backoff_max: int = SYNC_JOB_RETRY_BACKOFF_MAX) -> float:
    """Exponential backoff with jitter, capped at backoff_max seconds."""
    base = min(backoff_max, RETRY_BASE_DELAY_SECONDS * (2**retries))
    return min(backoff_max, base + random.uniform(0, base / 2))


def run_job(
    task: Task, kind: JobKind, handler: Callable[..., Any], payload: dict[str, Any]
) -> Any:
    """
    Execute one attempt of a job and classify its outcome.

    Transient errors (RETRYABLE_ERRORS) are redelivered with backoff until
    the task's max_retries is spent. Anything else fails the job at once.

    Args:
        task: The bound Celery task (for retry state)
        kind: Job kind being executed
        handler: Callable taking the payload fields as keyword arguments
        payload: Raw payload as received from the broker

    Returns:
        Whatever the handler returns
    """
    retries = task.request.retries or 0
    log = logger.bind(kind=kind.value, job_id=task.request.id, attempt=retries + 1)
    log.info("job_started")

    try:
        job_payload = JOB_PAYLOADS[kind].model_validate(payload)
        result = handler(**job_payload.model_dump())
    except RETRYABLE_ERRORS as e:
        if task.max_retries is not None and retries >= task.max_retries:
            job_attempts.labels(kind=kind.value, status="failure").inc()
            log.error("job_failed", error=str(e), error_type=type(e).__name__, exhausted=True)
            raise
        countdown = retry_delay(retries)
        job_attempts.labels(kind=kind.value, status="retry").inc()
        log.warning(
            "job_retrying",
            error=str(e),
            error_type=type(e).__name__,
            countdown=round(countdown, 1),
        )
        raise task.retry(exc=e, countdown=countdown)
    except Exception as e:
        job_attempts.labels(kind=kind.value, status="failure").inc()
        log.error("job_failed", error=str(e), error_type=type(e).__name__, exhausted=False)
        raise

    job_attempts.labels(kind=kind.value, status="success").inc()
    log.info("job_succeeded", result=result)
    return result


class SyncScheduler:
    """
    Owns the job queue: task registration, enqueueing and the recurring job.

    One scheduler per Celery app. The API builds one to enqueue work; the
    worker builds one and calls start() to install the recurring schedule.

    Example:
        >>> scheduler = SyncScheduler(create_celery_app(), engine)
        >>> scheduler.start()
        >>> job_id = scheduler.trigger_listing_sync(host_id=7)
    """

    def __init__(self, app: Celery, engine: Engine):
        self.app = app
        self.engine = engine
        self._started = False
        self.tasks = self._register_tasks()

    def _register_tasks(self) -> dict[JobKind, Task]:
        handlers: dict[JobKind, Callable[..., Any]] = {
            JobKind.SYNC_LISTINGS: self.handle_sync_listings,
            JobKind.SYNC_SINGLE_LISTING: self.handle_sync_single_listing,
            JobKind.SYNC_CALENDAR: self.handle_sync_calendar,
            JobKind.SYNC_ALL_HOSTS: self.handle_sync_all_hosts,
        }
        return {kind: self._register_task(kind, handler) for kind, handler in handlers.items()}

    def _register_task(self, kind: JobKind, handler: Callable[..., Any]) -> Task:
        def execute(task: Task, **payload: Any) -> Any:
            return run_job(task, kind, handler, payload)

        execute.__name__ = kind.value.replace("-", "_")
        return self.app.task(
            name=kind.value,
            bind=True,
            shared=False,
            lazy=False,
            max_retries=SYNC_JOB_MAX_RETRIES,
            acks_late=True,
        )(execute)

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """
        Install the recurring all-hosts sync in the beat schedule.

        Idempotent: the entry is keyed by RECURRING_JOB_ID, so calling start()
        again, or in another process, replaces it rather than adding a second.
        """
        schedule = dict(self.app.conf.beat_schedule or {})
        schedule[RECURRING_JOB_ID] = {
            "task": JobKind.SYNC_ALL_HOSTS.value,
            "schedule": RECURRING_SCHEDULE,
            "kwargs": {},
        }
        self.app.conf.beat_schedule = schedule
        self._started = True
        logger.info("scheduler_started", recurring_job=RECURRING_JOB_ID, cron="0 */6 * * *")

    def shutdown(self) -> None:
        """Release broker connections held by the app."""
        self.app.close()
        self._started = False
        logger.info("scheduler_stopped")

    def enqueue(self, kind: JobKind | str, payload: Optional[dict[str, Any]] = None) -> str:
        """
        Validate a payload and put a job on the queue.

        Args:
            kind: Job kind (enum member or its string value)
            payload: Job payload fields

        Returns:
            str: Job ID

        Raises:
            ValueError: Unknown job kind
            pydantic.ValidationError: Payload does not match the kind's model
        """
        kind = JobKind(kind)
        job_payload = JOB_PAYLOADS[kind].model_validate(payload or {})

        result = self.tasks[kind].apply_async(kwargs=job_payload.model_dump())
        jobs_enqueued.labels(kind=kind.value).inc()
        logger.info("job_enqueued", kind=kind.value, job_id=result.id, **job_payload.model_dump())
        return str(result.id)

    def trigger_listing_sync(self, host_id: int) -> str:
        """Manual trigger; every call enqueues an independent job."""
        return self.enqueue(JobKind.SYNC_LISTINGS, {"host_id": host_id})

    def trigger_calendar_sync(self, listing_id: int) -> str:
        return self.enqueue(JobKind.SYNC_CALENDAR, {"listing_id": listing_id})

    # Handlers: one per JobKind. Return values are small and JSON-safe.

    def handle_sync_listings(self, host_id: int) -> int:
        return len(sync_all_listings(self.engine, host_id))

    def handle_sync_single_listing(self, host_id: int, guesty_listing_id: str) -> int:
        stored = sync_one_listing(self.engine, host_id, guesty_listing_id)
        return int(stored["id"])

    def handle_sync_calendar(self, listing_id: int) -> int:
        return len(sync_calendar(self.engine, listing_id))

    def handle_sync_all_hosts(self) -> list[str]:
        """Fan out one sync-listings job per host linked to Guesty."""
        with self.engine.connect() as conn:
            host_ids = get_syncable_host_ids(conn)

        job_ids = [self.trigger_listing_sync(host_id) for host_id in host_ids]
        logger.info("all_hosts_sync_enqueued", hosts=len(host_ids))
        return job_ids
