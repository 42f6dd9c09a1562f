"""
Prometheus metrics for sync jobs, Guesty API calls, tokens and webhooks.

This module defines all Prometheus metrics used throughout the application.
Metrics are exposed via the /metrics endpoint of the API process.

Example:
    >>> from sync_guesty.metrics import sync_duration, records_synced
    >>> with sync_duration.labels(entity_type="listings").time():
    ...     listings = sync_all_listings(engine, host_id)
    ...     records_synced.labels(entity_type="listings").inc(len(listings))
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Sync Metrics
# =============================================================================

sync_total = Counter(
    "guesty_syncs_total",
    "Total number of sync operations (success and failure)",
    ["entity_type", "status"],
)
"""
Counter for sync operations.

Labels:
    entity_type: listings, listing, calendar
    status: success or failure
"""

sync_duration = Histogram(
    "guesty_sync_duration_seconds",
    "Duration of sync operations in seconds",
    ["entity_type"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, float("inf")),
)

records_synced = Counter(
    "guesty_records_synced_total",
    "Total number of records upserted into the database",
    ["entity_type"],
)

records_skipped = Counter(
    "guesty_records_skipped_total",
    "Vendor records skipped because they could not be mapped",
    ["entity_type"],
)

# =============================================================================
# API Metrics
# =============================================================================

api_requests = Counter(
    "guesty_api_requests_total",
    "Total Guesty API requests made",
    ["endpoint", "status_code"],
)
"""
Counter for API requests to Guesty.

Labels:
    endpoint: logical endpoint (listings, listing, availability, token)
    status_code: HTTP status code, or "error" for transport failures
"""

api_latency = Histogram(
    "guesty_api_latency_seconds",
    "Guesty API request latency in seconds",
    ["endpoint"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)

# =============================================================================
# Token Metrics
# =============================================================================

token_cache_hits = Counter(
    "guesty_token_cache_hits_total",
    "Total number of token cache hits",
)

token_cache_misses = Counter(
    "guesty_token_cache_misses_total",
    "Total number of token cache misses",
)

token_refreshes = Counter(
    "guesty_token_refreshes_total",
    "Total number of token refresh attempts",
    ["status"],
)

# =============================================================================
# Job and Webhook Metrics
# =============================================================================

job_attempts = Counter(
    "guesty_job_attempts_total",
    "Sync job attempts by kind and outcome",
    ["kind", "status"],
)
"""
Counter for job attempts.

Labels:
    kind: sync-listings, sync-single-listing, sync-calendar, sync-all-hosts
    status: success, retry (transient failure) or failure (terminal)
"""

jobs_enqueued = Counter(
    "guesty_jobs_enqueued_total",
    "Sync jobs enqueued by kind",
    ["kind"],
)

webhook_events = Counter(
    "guesty_webhook_events_total",
    "Inbound Guesty webhook events by type and outcome",
    ["event_type", "outcome"],
)
