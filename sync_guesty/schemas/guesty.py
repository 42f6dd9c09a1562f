"""
Shapes of the payloads Guesty sends us.

Guesty has renamed fields over time and different account types return
different subsets, so every field is optional. Listing and availability
records are ``TypedDict`` shapes that document what the normalizers may find;
they are never validated as a whole, because one odd field must not cost us
the rest of the record. The token response is small and fully under our
control, so it is validated with pydantic.
"""

from __future__ import annotations

from typing import Any, List, Optional, TypedDict

from pydantic import BaseModel, ConfigDict


class GuestyAddress(TypedDict, total=False):
    full: str
    street: str
    line1: str
    line2: str
    address1: str
    address2: str
    apt: str
    city: str
    state: str
    province: str
    zip: str
    postalCode: str
    country: str
    lat: float
    lng: float


class GuestyLocation(TypedDict, total=False):
    lat: float
    lng: float
    latitude: float
    longitude: float


class GuestyPrices(TypedDict, total=False):
    basePrice: float
    currency: str


# "_id" is not a valid identifier, so this shape uses the functional syntax
GuestyListing = TypedDict(
    "GuestyListing",
    {
        "_id": str,
        "id": str,
        "title": str,
        "name": str,
        "description": str,
        "publicDescription": dict,
        "propertyType": str,
        "propertyTypeCategory": str,
        "bedrooms": int,
        "bathrooms": float,
        "beds": int,
        "accommodates": int,
        "maxGuests": int,
        "address": GuestyAddress,
        "location": GuestyLocation,
        "geo": GuestyLocation,
        "amenities": List[str],
        "pictures": List[Any],
        "images": List[Any],
        "basePrice": float,
        "defaultDailyPrice": float,
        "dailyRate": float,
        "prices": GuestyPrices,
    },
    total=False,
)


class GuestyAvailabilityDay(TypedDict, total=False):
    date: str
    available: bool
    status: str
    price: float
    nightlyPrice: float
    basePrice: float
    defaultDailyPrice: float
    minimumStay: int
    minNights: int
    minStay: int


class GuestyListingPage(TypedDict, total=False):
    results: List[GuestyListing]
    data: List[GuestyListing]
    page: int
    pages: int
    limit: int
    count: int


class GuestyAvailabilityResponse(TypedDict, total=False):
    results: List[GuestyAvailabilityDay]
    days: List[GuestyAvailabilityDay]
    data: List[GuestyAvailabilityDay]


class TokenResponse(BaseModel):
    """
    Body of a successful OAuth token grant.

    access_token is optional here so a 200 without a token can be reported as
    an auth failure instead of a validation error.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    expires_in: Optional[int] = None
