"""
Error taxonomy for the Guesty synchronization engine.

Every failure the engine raises on purpose is a ``SyncError``. The job
scheduler uses ``RETRYABLE_ERRORS`` to decide which failed attempts are
redelivered with backoff; everything else fails the job terminally.
``MalformedRecordError`` never leaves a synchronizer: the offending vendor
record is logged and skipped.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError


class SyncError(Exception):
    """Base class for synchronization engine errors."""


class NotFoundError(SyncError):
    """A host or listing referenced by a job does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class NotLinkedError(SyncError):
    """A listing has no Guesty identifier, so it cannot be synced."""

    def __init__(self, listing_id: int):
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} does not have a linked Guesty ID")


class MissingRefreshTokenError(SyncError):
    """The host has no stored refresh token to renew its access token with."""

    def __init__(self, host_id: int):
        self.host_id = host_id
        super().__init__(f"Host {host_id} does not have a stored Guesty refresh token")


class VendorAuthError(SyncError):
    """The Guesty token endpoint rejected the refresh or returned no access token."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class VendorRequestError(SyncError):
    """A Guesty data endpoint failed (transport error, non-2xx, or unusable body)."""

    def __init__(self, endpoint: str, status_code: Optional[int] = None, detail: str = ""):
        self.endpoint = endpoint
        self.status_code = status_code
        self.detail = detail
        status = status_code if status_code is not None else "N/A"
        super().__init__(f"Guesty request to {endpoint} failed (status={status}): {detail}")


class PersistenceError(SyncError):
    """A write to the store could not be confirmed."""


class PageLimitExceededError(SyncError):
    """Listing pagination ran past the configured page cap."""

    def __init__(self, host_id: int, max_pages: int):
        self.host_id = host_id
        self.max_pages = max_pages
        super().__init__(
            f"Listing sync for host {host_id} exceeded {max_pages} pages; "
            "the vendor may be returning full pages indefinitely"
        )


class MalformedRecordError(SyncError):
    """A single vendor record could not be mapped and is skipped."""


RETRYABLE_ERRORS: tuple[type[Exception], ...] = (
    VendorAuthError,
    VendorRequestError,
    PersistenceError,
    SQLAlchemyError,
)
