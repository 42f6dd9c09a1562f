# sync_guesty/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sync_guesty.config import ALLOWED_ORIGINS
from sync_guesty.logging_config import setup_logging
from sync_guesty.middleware import RequestIDMiddleware
from sync_guesty.routes.health import router as health_router
from sync_guesty.routes.metrics import router as metrics_router
from sync_guesty.routes.sync import router as sync_router
from sync_guesty.routes.webhook import router as webhook_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Guesty Sync API",
    description="Webhook receiver and manual sync triggers for the Guesty sync engine",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(sync_router, tags=["Sync"])
app.include_router(webhook_router, tags=["Webhooks"])


@app.on_event("startup")
def startup_event() -> None:
    """Load the host cache and connect the job producer."""
    from sync_guesty.db.engine import engine
    from sync_guesty.jobs.scheduler import SyncScheduler, create_celery_app
    from sync_guesty.services.host_cache import refresh_host_cache

    logger.info("api_starting")

    refresh_host_cache(engine)
    app.state.scheduler = SyncScheduler(create_celery_app(), engine)

    logger.info("api_started")


@app.on_event("shutdown")
def shutdown_event() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.shutdown()
