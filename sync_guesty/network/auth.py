from datetime import datetime, timedelta
from typing import Any, Optional

import requests
import structlog
from pydantic import ValidationError
from sqlalchemy.engine import Engine

from sync_guesty import config
from sync_guesty.cache import token_cache
from sync_guesty.db.readers.hosts import get_host_credentials
from sync_guesty.db.writers.hosts import update_host_tokens
from sync_guesty.errors import (
    MissingRefreshTokenError,
    NotFoundError,
    PersistenceError,
    VendorAuthError,
)
from sync_guesty.metrics import (
    api_requests,
    token_cache_hits,
    token_cache_misses,
    token_refreshes,
)
from sync_guesty.schemas.guesty import TokenResponse
from sync_guesty.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

TOKEN_EXPIRY_BUFFER = timedelta(seconds=config.TOKEN_EXPIRY_BUFFER_SECONDS)


def is_token_fresh(
    token: Optional[str], expires_at: Optional[datetime], now: Optional[datetime] = None
) -> bool:
    """
    Decide whether a stored token can be used as-is.

    A token is fresh only if it expires strictly more than the safety buffer
    from now, so it cannot expire while a request made with it is in flight.

    Args:
        token: Stored access token
        expires_at: Stored expiry (timezone-aware)
        now: Reference time (defaults to utc_now())

    Returns:
        bool: True if the token can be returned without a refresh
    """
    if not token or expires_at is None:
        return False
    now = now or utc_now()
    return expires_at - now > TOKEN_EXPIRY_BUFFER


def request_token_refresh(refresh_token: str) -> TokenResponse:
    """
    Exchange a refresh token for a new Guesty token set.

    Args:
        refresh_token (str): Refresh token stored for the host.

    Returns:
        TokenResponse: Parsed grant response carrying an access token.

    Raises:
        VendorAuthError: If client credentials are not configured, the grant is
            rejected, or the response has no access_token.
    """
    if not config.GUESTY_CLIENT_ID or not config.GUESTY_CLIENT_SECRET:
        raise VendorAuthError(
            "GUESTY_CLIENT_ID and GUESTY_CLIENT_SECRET must be set in the environment"
        )

    payload = {
        "grant_type": "refresh_token",
        "refresh_token": refresh_token,
        "client_id": config.GUESTY_CLIENT_ID,
        "client_secret": config.GUESTY_CLIENT_SECRET,
    }

    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "Accept": "application/json",
    }

    try:
        response = requests.post(
            config.GUESTY_TOKEN_URL,
            data=payload,
            headers=headers,
            timeout=config.GUESTY_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        api_requests.labels(endpoint="token", status_code="error").inc()
        logger.error("token_request_failed", error=str(e))
        raise VendorAuthError(f"Guesty token request failed: {e}") from e

    api_requests.labels(endpoint="token", status_code=str(response.status_code)).inc()

    if not response.ok:
        logger.error(
            "token_refresh_rejected",
            status_code=response.status_code,
            response_text=response.text[:500],
        )
        raise VendorAuthError(
            f"Guesty rejected the refresh token grant (status={response.status_code})",
            status_code=response.status_code,
        )

    try:
        body: Any = response.json()
        data = TokenResponse.model_validate(body)
    except (ValueError, ValidationError) as e:
        raise VendorAuthError(f"Unreadable Guesty token response: {e}") from e

    if not data.access_token:
        logger.error("access_token_missing", response_text=response.text[:500])
        raise VendorAuthError("Guesty refresh response did not include an access_token")

    return data


def refresh_access_token(engine: Engine, host_id: int) -> str:
    """
    Refresh and store a new Guesty access token for a host.

    The check-and-refresh runs in one transaction holding a row lock on the
    host, and the freshness check is repeated once the lock is held: when two
    jobs race for the same host, the second one finds the token the first one
    stored and returns it without a second grant.

    Args:
        engine (Engine): SQLAlchemy engine.
        host_id (int): Host primary key.

    Returns:
        str: A valid bearer token.
    """
    token_cache.invalidate(host_id)

    with engine.begin() as conn:
        creds = get_host_credentials(conn, host_id, for_update=True)
        if creds is None:
            raise NotFoundError("host", host_id)

        if is_token_fresh(creds["access_token"], creds["expires_at"]):
            logger.debug("token_refreshed_concurrently", host_id=host_id)
            token_cache.set(host_id, creds["access_token"], creds["expires_at"])
            return str(creds["access_token"])

        previous_refresh = creds["refresh_token"]
        if not previous_refresh:
            raise MissingRefreshTokenError(host_id)

        try:
            grant = request_token_refresh(previous_refresh)
        except VendorAuthError:
            token_refreshes.labels(status="failure").inc()
            raise

        lifetime = (
            grant.expires_in
            if grant.expires_in is not None
            else config.GUESTY_DEFAULT_TOKEN_TTL_SECONDS
        )
        expires_at = utc_now() + timedelta(seconds=lifetime)

        persisted = update_host_tokens(
            conn,
            host_id,
            access_token=str(grant.access_token),
            refresh_token=grant.refresh_token or previous_refresh,
            token_type=grant.token_type or creds["token_type"],
            scope=grant.scope or creds["scope"],
            expires_at=expires_at,
        )

        if not persisted:
            token_refreshes.labels(status="failure").inc()
            raise PersistenceError(f"Failed to persist Guesty access token for host {host_id}")

    token_cache.set(host_id, persisted, expires_at)
    token_refreshes.labels(status="success").inc()

    logger.info("token_refreshed", host_id=host_id, expires_at=expires_at.isoformat())
    return persisted


def get_valid_access_token(engine: Engine, host_id: int) -> str:
    """
    Get a Guesty access token for a host that is valid for at least the buffer.

    Checks the process cache first, then the hosts table, and refreshes when
    the stored token is missing or about to expire.

    Args:
        engine (Engine): SQLAlchemy engine.
        host_id (int): Host primary key.

    Returns:
        str: Access token

    Raises:
        NotFoundError: The host does not exist.
        MissingRefreshTokenError: A refresh is needed but no refresh token is stored.
        VendorAuthError: Guesty rejected the refresh.
        PersistenceError: The refreshed token could not be stored.
    """
    cached_token = token_cache.get(host_id)
    if cached_token:
        token_cache_hits.inc()
        logger.debug("token_cache_hit", host_id=host_id)
        return cached_token

    token_cache_misses.inc()

    with engine.connect() as conn:
        creds = get_host_credentials(conn, host_id)

    if creds is None:
        raise NotFoundError("host", host_id)

    if is_token_fresh(creds["access_token"], creds["expires_at"]):
        token_cache.set(host_id, creds["access_token"], creds["expires_at"])
        return str(creds["access_token"])

    logger.debug("token_stale_or_missing", host_id=host_id)
    return refresh_access_token(engine, host_id)
