"""SQLAlchemy model for hosts and their Guesty credentials."""

from sqlalchemy import TIMESTAMP, CheckConstraint, Column, Integer, String, Text, text

from sync_guesty.config import SCHEMA
from sync_guesty.models.base import Base


class Host(Base):
    """
    ORM model for hosts connected to Guesty.

    Holds the OAuth credentials the token manager keeps valid. The
    authorization-code exchange creates the row and the first token set;
    afterwards only the token manager rewrites the token columns.
    guesty_account_id resolves inbound webhooks to a host.
    """

    __tablename__ = "hosts"
    __table_args__ = (
        CheckConstraint(
            "guesty_access_token IS NULL OR guesty_expires_at IS NOT NULL",
            name="token_has_expiry",
        ),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    guesty_account_id = Column(String, nullable=True, unique=True, index=True)
    guesty_access_token = Column(Text, nullable=True)
    guesty_refresh_token = Column(Text, nullable=True)
    guesty_token_type = Column(String, nullable=True)
    guesty_scope = Column(String, nullable=True)
    guesty_expires_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()"))
