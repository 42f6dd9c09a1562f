"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP guesty_syncs_total Total number of sync operations (success and failure)
        # TYPE guesty_syncs_total counter
        guesty_syncs_total{entity_type="listings",status="success"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Expose the process's metrics in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
