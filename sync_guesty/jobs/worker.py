"""
Celery worker entry point.

Run with:
    celery -A sync_guesty.jobs.worker worker --beat --loglevel=INFO
"""

from typing import Any

import structlog
from celery.signals import setup_logging as celery_setup_logging
from celery.signals import task_postrun, task_prerun

from sync_guesty.db.engine import engine
from sync_guesty.jobs.scheduler import SyncScheduler, create_celery_app
from sync_guesty.logging_config import setup_logging

logger = structlog.get_logger(__name__)


@celery_setup_logging.connect
def configure_worker_logging(**kwargs: Any) -> None:
    """Route Celery's own logging through the structlog setup."""
    setup_logging()


@task_prerun.connect
def bind_job_context(task_id: str | None = None, task: Any = None, **kwargs: Any) -> None:
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        job_id=task_id, job_kind=getattr(task, "name", None)
    )


@task_postrun.connect
def clear_job_context(**kwargs: Any) -> None:
    structlog.contextvars.clear_contextvars()


app = create_celery_app()
scheduler = SyncScheduler(app, engine)
scheduler.start()
