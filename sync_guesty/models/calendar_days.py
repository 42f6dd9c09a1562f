from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
    text,
)
from sqlalchemy.sql import func

from sync_guesty.config import SCHEMA
from sync_guesty.models.base import Base


class CalendarDay(Base):
    """
    ORM model for per-day availability and pricing of a listing.

    One row per (listing_id, date); that pair is the upsert key. Dates are UTC
    calendar days. The calendar sync only writes the forward window and never
    purges past rows.
    """

    __tablename__ = "calendar_days"
    __table_args__ = (
        UniqueConstraint("listing_id", "date", name="uq_calendar_days_listing_id_date"),
        CheckConstraint("min_stay >= 1", name="min_stay_positive"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_id = Column(
        Integer,
        ForeignKey(f"{SCHEMA}.listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date = Column(Date, nullable=False)
    available = Column(Boolean, nullable=False, server_default=text("TRUE"))
    price = Column(Numeric(12, 2), nullable=False)
    min_stay = Column(Integer, nullable=False, server_default=text("1"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
