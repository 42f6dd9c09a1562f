"""
Fixtures for database writer integration tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

import pytest

from sync_guesty.db.engine import engine
from sync_guesty.db.writers.listings import upsert_listing


@pytest.fixture
def listing_row(test_host: int) -> Callable[..., dict[str, Any]]:
    """Factory for fully mapped listing rows owned by the test host."""

    def build(guesty_id: str, **overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "guesty_id": guesty_id,
            "host_id": test_host,
            "title": "Seaside Loft",
            "description": "Two minutes from the beach",
            "property_type": "Apartment",
            "bedrooms": 2,
            "bathrooms": Decimal("1.5"),
            "beds": 3,
            "max_guests": 4,
            "address_line1": "1 Harbour Rd",
            "address_line2": None,
            "city": "Lisbon",
            "state": None,
            "postal_code": "1100-001",
            "country": "Portugal",
            "latitude": 38.7223,
            "longitude": -9.1393,
            "photos": ["https://img.example/1.jpg"],
            "amenities": ["Wifi", "Kitchen"],
            "base_price": Decimal("120.00"),
        }
        row.update(overrides)
        return row

    return build


@pytest.fixture
def test_listing(listing_row: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    """Insert one listing for the test host and return the stored row."""
    with engine.begin() as conn:
        return upsert_listing(conn, listing_row("GL-fixture"))
