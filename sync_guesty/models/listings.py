from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from sync_guesty.config import SCHEMA
from sync_guesty.models.base import Base


class Listing(Base):
    """
    ORM model for Guesty property listings.

    Each listing belongs to a host and is keyed for upserts by guesty_id, the
    identifier Guesty assigned to it. Descriptive columns are mapped from the
    vendor payload field by field; see sync_guesty.normalizers.listings.
    Listings are never deleted by a sync, even when Guesty stops returning them.
    """

    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("base_price >= 0", name="base_price_non_negative"),
        CheckConstraint("guesty_id <> ''", name="guesty_id_not_empty"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    guesty_id = Column(String, nullable=False, unique=True, index=True)
    host_id = Column(
        Integer,
        ForeignKey(f"{SCHEMA}.hosts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    property_type = Column(String, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Numeric(4, 1), nullable=True)
    beds = Column(Integer, nullable=True)
    max_guests = Column(Integer, nullable=True)
    address_line1 = Column(String, nullable=True)
    address_line2 = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    country = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    photos = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    amenities = Column(JSONB, nullable=False, server_default=text("'[]'::jsonb"))
    base_price = Column(Numeric(12, 2), nullable=False, server_default=text("0"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
