"""
Unit tests for network/auth.py token management.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from sync_guesty.cache import token_cache
from sync_guesty.errors import (
    MissingRefreshTokenError,
    NotFoundError,
    PersistenceError,
    VendorAuthError,
)
from sync_guesty.network.auth import (
    get_valid_access_token,
    is_token_fresh,
    refresh_access_token,
    request_token_refresh,
)
from sync_guesty.schemas.guesty import TokenResponse

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_creds(
    access_token: Optional[str] = "stored-token",
    expires_at: Optional[datetime] = None,
    refresh_token: Optional[str] = "stored-refresh",
) -> dict[str, Any]:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "Bearer",
        "scope": "open-api",
        "expires_at": expires_at,
    }


def make_response(
    status_code: int = 200, body: Any = None, text: str = "", ok: Optional[bool] = None
) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.ok = ok if ok is not None else status_code < 400
    response.text = text
    response.json.return_value = body
    return response


# --- is_token_fresh -----------------------------------------------------------


@pytest.mark.unit
def test_token_with_more_than_five_minutes_left_is_fresh() -> None:
    assert is_token_fresh("tok", NOW + timedelta(minutes=5, seconds=1), now=NOW)


@pytest.mark.unit
@pytest.mark.parametrize(
    "remaining",
    [timedelta(minutes=5), timedelta(minutes=4, seconds=59), timedelta(0), timedelta(hours=-1)],
)
def test_token_inside_buffer_is_stale(remaining: timedelta) -> None:
    assert not is_token_fresh("tok", NOW + remaining, now=NOW)


@pytest.mark.unit
def test_missing_token_or_expiry_is_stale() -> None:
    assert not is_token_fresh(None, NOW + timedelta(hours=1), now=NOW)
    assert not is_token_fresh("tok", None, now=NOW)


# --- request_token_refresh ----------------------------------------------------


@pytest.mark.unit
@patch("sync_guesty.network.auth.requests.post")
def test_request_token_refresh_posts_refresh_grant(mock_post: Mock) -> None:
    """The grant is form-encoded and carries the client credentials."""
    mock_post.return_value = make_response(
        body={"access_token": "new-token", "expires_in": 86400, "token_type": "Bearer"}
    )

    grant = request_token_refresh("refresh-123")

    assert grant.access_token == "new-token"
    assert grant.expires_in == 86400
    data = mock_post.call_args.kwargs["data"]
    assert data["grant_type"] == "refresh_token"
    assert data["refresh_token"] == "refresh-123"
    assert data["client_id"] == "test-client-id"
    assert data["client_secret"] == "test-client-secret"
    assert mock_post.call_args.kwargs["timeout"] > 0


@pytest.mark.unit
@patch("sync_guesty.network.auth.requests.post")
def test_request_token_refresh_raises_on_rejection(mock_post: Mock) -> None:
    mock_post.return_value = make_response(status_code=401, text="invalid_grant")

    with pytest.raises(VendorAuthError) as exc_info:
        request_token_refresh("revoked")

    assert exc_info.value.status_code == 401


@pytest.mark.unit
@patch("sync_guesty.network.auth.requests.post")
def test_request_token_refresh_raises_when_access_token_missing(mock_post: Mock) -> None:
    mock_post.return_value = make_response(body={"token_type": "Bearer"}, text="{}")

    with pytest.raises(VendorAuthError, match="access_token"):
        request_token_refresh("refresh-123")


@pytest.mark.unit
@patch("sync_guesty.network.auth.requests.post")
def test_request_token_refresh_wraps_transport_errors(mock_post: Mock) -> None:
    mock_post.side_effect = requests.ConnectionError("connection reset")

    with pytest.raises(VendorAuthError, match="connection reset"):
        request_token_refresh("refresh-123")


@pytest.mark.unit
@patch("sync_guesty.config.GUESTY_CLIENT_SECRET", None)
@patch("sync_guesty.network.auth.requests.post")
def test_request_token_refresh_requires_client_credentials(mock_post: Mock) -> None:
    with pytest.raises(VendorAuthError, match="GUESTY_CLIENT_ID"):
        request_token_refresh("refresh-123")

    mock_post.assert_not_called()


# --- get_valid_access_token ---------------------------------------------------


@pytest.mark.unit
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_fresh_stored_token_is_returned_without_refresh(
    mock_get_creds: Mock, mock_grant: Mock
) -> None:
    mock_engine = MagicMock()
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=30)
    mock_get_creds.return_value = make_creds(expires_at=expires_at)

    token = get_valid_access_token(mock_engine, 7)

    assert token == "stored-token"
    mock_grant.assert_not_called()
    mock_engine.begin.assert_not_called()


@pytest.mark.unit
@patch("sync_guesty.network.auth.get_host_credentials")
def test_cached_token_skips_database(mock_get_creds: Mock) -> None:
    mock_engine = MagicMock()
    token_cache.set(7, "cached-token", datetime.now(timezone.utc) + timedelta(hours=1))

    assert get_valid_access_token(mock_engine, 7) == "cached-token"
    mock_get_creds.assert_not_called()
    mock_engine.connect.assert_not_called()


@pytest.mark.unit
@patch("sync_guesty.network.auth.get_host_credentials")
def test_unknown_host_raises_not_found(mock_get_creds: Mock) -> None:
    mock_get_creds.return_value = None

    with pytest.raises(NotFoundError, match="Host 404 not found"):
        get_valid_access_token(MagicMock(), 404)


@pytest.mark.unit
@patch("sync_guesty.network.auth.utc_now", return_value=NOW)
@patch("sync_guesty.network.auth.update_host_tokens")
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_token_expiring_within_buffer_is_refreshed(
    mock_get_creds: Mock, mock_grant: Mock, mock_update: Mock, _mock_now: Mock
) -> None:
    """4m59s left triggers a refresh; the refresh token falls back to the stored one."""
    mock_engine = MagicMock()
    mock_conn = MagicMock()
    mock_engine.begin.return_value.__enter__.return_value = mock_conn

    mock_get_creds.return_value = make_creds(expires_at=NOW + timedelta(minutes=4, seconds=59))
    mock_grant.return_value = TokenResponse(access_token="new-token", expires_in=3600)
    mock_update.return_value = "new-token"

    token = get_valid_access_token(mock_engine, 7)

    assert token == "new-token"
    mock_grant.assert_called_once_with("stored-refresh")
    mock_get_creds.assert_called_with(mock_conn, 7, for_update=True)
    mock_update.assert_called_once_with(
        mock_conn,
        7,
        access_token="new-token",
        refresh_token="stored-refresh",
        token_type="Bearer",
        scope="open-api",
        expires_at=NOW + timedelta(seconds=3600),
    )


@pytest.mark.unit
@patch("sync_guesty.network.auth.utc_now", return_value=NOW)
@patch("sync_guesty.network.auth.update_host_tokens")
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_refresh_without_expires_in_uses_default_lifetime(
    mock_get_creds: Mock, mock_grant: Mock, mock_update: Mock, _mock_now: Mock
) -> None:
    mock_engine = MagicMock()
    mock_get_creds.return_value = make_creds(access_token=None, expires_at=None)
    mock_grant.return_value = TokenResponse(access_token="new-token", refresh_token="rotated")
    mock_update.return_value = "new-token"

    refresh_access_token(mock_engine, 7)

    kwargs = mock_update.call_args.kwargs
    assert kwargs["refresh_token"] == "rotated"
    assert kwargs["expires_at"] == NOW + timedelta(seconds=86400)


@pytest.mark.unit
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_refresh_reuses_token_stored_by_concurrent_caller(
    mock_get_creds: Mock, mock_grant: Mock
) -> None:
    """Once the row lock is held, a token refreshed meanwhile is returned as-is."""
    mock_engine = MagicMock()
    fresh_expiry = datetime.now(timezone.utc) + timedelta(hours=23)
    mock_get_creds.side_effect = [
        make_creds(expires_at=datetime.now(timezone.utc) + timedelta(minutes=1)),
        make_creds(access_token="refreshed-elsewhere", expires_at=fresh_expiry),
    ]

    token = get_valid_access_token(mock_engine, 7)

    assert token == "refreshed-elsewhere"
    mock_grant.assert_not_called()


@pytest.mark.unit
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_refresh_without_refresh_token_raises(mock_get_creds: Mock, mock_grant: Mock) -> None:
    mock_get_creds.return_value = make_creds(access_token=None, refresh_token=None)

    with pytest.raises(MissingRefreshTokenError):
        get_valid_access_token(MagicMock(), 7)

    mock_grant.assert_not_called()


@pytest.mark.unit
@patch("sync_guesty.network.auth.update_host_tokens")
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_refresh_raises_when_write_not_confirmed(
    mock_get_creds: Mock, mock_grant: Mock, mock_update: Mock
) -> None:
    mock_get_creds.return_value = make_creds(access_token=None)
    mock_grant.return_value = TokenResponse(access_token="new-token", expires_in=60)
    mock_update.return_value = None

    with pytest.raises(PersistenceError):
        refresh_access_token(MagicMock(), 7)

    assert token_cache.get(7) is None


@pytest.mark.unit
@patch("sync_guesty.network.auth.update_host_tokens")
@patch("sync_guesty.network.auth.request_token_refresh")
@patch("sync_guesty.network.auth.get_host_credentials")
def test_rejected_refresh_propagates_and_writes_nothing(
    mock_get_creds: Mock, mock_grant: Mock, mock_update: Mock
) -> None:
    mock_get_creds.return_value = make_creds(access_token=None)
    mock_grant.side_effect = VendorAuthError("rejected", status_code=400)

    with pytest.raises(VendorAuthError):
        refresh_access_token(MagicMock(), 7)

    mock_update.assert_not_called()
