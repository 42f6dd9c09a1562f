"""Job kinds and their payloads."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobKind(str, Enum):
    """Every job the sync queue accepts. The value doubles as the Celery task name."""

    SYNC_LISTINGS = "sync-listings"
    SYNC_SINGLE_LISTING = "sync-single-listing"
    SYNC_CALENDAR = "sync-calendar"
    SYNC_ALL_HOSTS = "sync-all-hosts"


class JobPayload(BaseModel):
    """Base for job payloads; unknown keys are rejected so typos fail at enqueue time."""

    model_config = ConfigDict(extra="forbid")


class SyncListingsPayload(JobPayload):
    host_id: int = Field(..., description="Host whose listings are synced")


class SyncSingleListingPayload(JobPayload):
    host_id: int = Field(..., description="Host that owns the listing")
    guesty_listing_id: str = Field(..., min_length=1, description="Guesty listing ID")


class SyncCalendarPayload(JobPayload):
    listing_id: int = Field(..., description="Local listing ID")


class SyncAllHostsPayload(JobPayload):
    pass


JOB_PAYLOADS: dict[JobKind, type[JobPayload]] = {
    JobKind.SYNC_LISTINGS: SyncListingsPayload,
    JobKind.SYNC_SINGLE_LISTING: SyncSingleListingPayload,
    JobKind.SYNC_CALENDAR: SyncCalendarPayload,
    JobKind.SYNC_ALL_HOSTS: SyncAllHostsPayload,
}
