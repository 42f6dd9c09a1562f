"""
Integration tests for token refresh persistence.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import Mock, patch

import pytest
from sqlalchemy import update

from sync_guesty.db.engine import engine
from sync_guesty.db.readers.hosts import get_host_credentials
from sync_guesty.models.hosts import Host
from sync_guesty.network.auth import get_valid_access_token
from sync_guesty.utils.datetime import utc_now


def expire_token(host_id: int) -> None:
    with engine.begin() as conn:
        conn.execute(
            update(Host)
            .where(Host.id == host_id)
            .values(guesty_expires_at=utc_now() + timedelta(seconds=30))
        )


@pytest.mark.integration
@patch("sync_guesty.network.auth.requests.post")
def test_fresh_stored_token_is_used_without_refresh(mock_post: Mock, test_host: int) -> None:
    assert get_valid_access_token(engine, test_host) == "stored-access-token"
    mock_post.assert_not_called()


@pytest.mark.integration
@patch("sync_guesty.network.auth.requests.post")
def test_expiring_token_is_refreshed_and_persisted(mock_post: Mock, test_host: int) -> None:
    expire_token(test_host)
    mock_post.return_value.ok = True
    mock_post.return_value.status_code = 200
    mock_post.return_value.json.return_value = {
        "access_token": "rotated-access",
        "refresh_token": "rotated-refresh",
        "expires_in": 86400,
    }

    token = get_valid_access_token(engine, test_host)

    assert token == "rotated-access"
    assert mock_post.call_args.kwargs["data"]["refresh_token"] == "stored-refresh-token"

    with engine.connect() as conn:
        creds = get_host_credentials(conn, test_host)

    assert creds is not None
    assert creds["access_token"] == "rotated-access"
    assert creds["refresh_token"] == "rotated-refresh"
    # Token type and scope survive a grant that omits them
    assert creds["token_type"] == "Bearer"
    assert creds["scope"] == "open-api"
    assert creds["expires_at"] > utc_now() + timedelta(hours=23)

    # A second call is served without another grant
    assert get_valid_access_token(engine, test_host) == "rotated-access"
    mock_post.assert_called_once()
