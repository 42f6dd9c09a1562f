"""
In-memory, expiry-aware access token cache.

Sits in front of the hosts table so a worker that runs many jobs for the same
host does not read the credential row on every call. Unlike a plain TTL cache,
entries carry the token's real expiry: a token is only served while it is
still outside the refresh safety buffer, so the cache can never hand out a
token the token manager would have refreshed.

For distributed deployments each worker process keeps its own cache; the
hosts table stays the source of truth.
"""

import threading
from datetime import datetime, timedelta
from typing import Optional

from sync_guesty.config import TOKEN_EXPIRY_BUFFER_SECONDS
from sync_guesty.utils.datetime import utc_now


class TokenCache:
    """
    Thread-safe cache of access tokens keyed by host ID.

    Attributes:
        buffer: Minimum remaining lifetime for a cached token to be served
        _cache: Internal storage mapping host_id to (token, expires_at) tuples

    Example:
        >>> cache = TokenCache(buffer_seconds=300)
        >>> cache.set(7, "token-abc-123", expires_at)
        >>> token = cache.get(7)
        >>> cache.invalidate(7)
    """

    def __init__(self, buffer_seconds: int = TOKEN_EXPIRY_BUFFER_SECONDS):
        self.buffer = timedelta(seconds=buffer_seconds)
        self._cache: dict[int, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, host_id: int) -> Optional[str]:
        """
        Get the cached token if it is still outside the safety buffer.

        Args:
            host_id: Host primary key

        Returns:
            Cached token string, or None if absent or about to expire
        """
        with self._lock:
            entry = self._cache.get(host_id)
            if entry is None:
                return None
            token, expires_at = entry
            if expires_at - utc_now() > self.buffer:
                return token
            # Inside the buffer - force the caller back to the store
            del self._cache[host_id]
            return None

    def set(self, host_id: int, token: str, expires_at: datetime) -> None:
        """
        Cache a token until its expiry.

        Args:
            host_id: Host primary key
            token: Access token to cache
            expires_at: Timezone-aware expiry of the token
        """
        with self._lock:
            self._cache[host_id] = (token, expires_at)

    def invalidate(self, host_id: int) -> None:
        """Remove a host's token from the cache."""
        with self._lock:
            self._cache.pop(host_id, None)

    def clear(self) -> None:
        """Clear all cached tokens (used by tests)."""
        with self._lock:
            self._cache.clear()

    def size(self) -> int:
        """Number of cached tokens."""
        with self._lock:
            return len(self._cache)


# Process-wide instance shared by the token manager
token_cache = TokenCache()
