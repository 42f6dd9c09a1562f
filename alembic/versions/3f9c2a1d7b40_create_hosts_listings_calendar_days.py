"""Create hosts, listings and calendar_days

Revision ID: 3f9c2a1d7b40
Revises:
Create Date: 2026-10-19 09:12:31.418220

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "3f9c2a1d7b40"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "guesty"


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "hosts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guesty_account_id", sa.String(), nullable=True),
        sa.Column("guesty_access_token", sa.Text(), nullable=True),
        sa.Column("guesty_refresh_token", sa.Text(), nullable=True),
        sa.Column("guesty_token_type", sa.String(), nullable=True),
        sa.Column("guesty_scope", sa.String(), nullable=True),
        sa.Column("guesty_expires_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False
        ),
        sa.CheckConstraint(
            "guesty_access_token IS NULL OR guesty_expires_at IS NOT NULL",
            name="ck_hosts_token_has_expiry",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_hosts"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_hosts_guesty_account_id", "hosts", ["guesty_account_id"], unique=True, schema=SCHEMA
    )

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guesty_id", sa.String(), nullable=False),
        sa.Column("host_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("property_type", sa.String(), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Numeric(4, 1), nullable=True),
        sa.Column("beds", sa.Integer(), nullable=True),
        sa.Column("max_guests", sa.Integer(), nullable=True),
        sa.Column("address_line1", sa.String(), nullable=True),
        sa.Column("address_line2", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("postal_code", sa.String(), nullable=True),
        sa.Column("country", sa.String(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "photos",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column(
            "amenities",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("base_price", sa.Numeric(12, 2), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("base_price >= 0", name="ck_listings_base_price_non_negative"),
        sa.CheckConstraint("guesty_id <> ''", name="ck_listings_guesty_id_not_empty"),
        sa.ForeignKeyConstraint(
            ["host_id"],
            [f"{SCHEMA}.hosts.id"],
            name="fk_listings_host_id_hosts",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_listings"),
        schema=SCHEMA,
    )
    op.create_index("ix_listings_guesty_id", "listings", ["guesty_id"], unique=True, schema=SCHEMA)
    op.create_index("ix_listings_host_id", "listings", ["host_id"], unique=False, schema=SCHEMA)

    op.create_table(
        "calendar_days",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("listing_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("available", sa.Boolean(), server_default=sa.text("TRUE"), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("min_stay", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.CheckConstraint("min_stay >= 1", name="ck_calendar_days_min_stay_positive"),
        sa.ForeignKeyConstraint(
            ["listing_id"],
            [f"{SCHEMA}.listings.id"],
            name="fk_calendar_days_listing_id_listings",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_calendar_days"),
        sa.UniqueConstraint("listing_id", "date", name="uq_calendar_days_listing_id_date"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_calendar_days_listing_id", "calendar_days", ["listing_id"], unique=False, schema=SCHEMA
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_calendar_days_listing_id", table_name="calendar_days", schema=SCHEMA)
    op.drop_table("calendar_days", schema=SCHEMA)
    op.drop_index("ix_listings_host_id", table_name="listings", schema=SCHEMA)
    op.drop_index("ix_listings_guesty_id", table_name="listings", schema=SCHEMA)
    op.drop_table("listings", schema=SCHEMA)
    op.drop_index("ix_hosts_guesty_account_id", table_name="hosts", schema=SCHEMA)
    op.drop_table("hosts", schema=SCHEMA)
