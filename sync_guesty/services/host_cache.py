"""
In-memory map of Guesty account IDs to host IDs.

Webhooks identify the sender by Guesty account ID only. This cache resolves
them to hosts without a database round trip per event.

Strategy:
- Load every linked account on startup
- Lazy-load accounts not seen yet (query once, cache on hit)
- Thread-safe operations using threading.Lock
"""

import threading
from typing import Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from sync_guesty.db.readers.hosts import get_host_id_by_account, get_linked_account_map

logger = structlog.get_logger(__name__)

_host_ids_by_account: dict[str, int] = {}
_cache_lock = threading.Lock()


def refresh_host_cache(engine: Engine) -> None:
    """
    Reload the cache with every host linked to a Guesty account.

    Called on API startup.

    Args:
        engine: SQLAlchemy engine for database connection
    """
    global _host_ids_by_account

    with engine.connect() as conn:
        account_map = get_linked_account_map(conn)

    with _cache_lock:
        _host_ids_by_account = dict(account_map)

    logger.info("host_cache_refreshed", hosts=len(account_map))


def get_cached_host_id(guesty_account_id: str) -> Optional[int]:
    """Return the cached host ID for an account, without touching the database."""
    with _cache_lock:
        return _host_ids_by_account.get(guesty_account_id)


def resolve_host_id(guesty_account_id: str, conn: Connection) -> Optional[int]:
    """
    Resolve a Guesty account ID to a host ID.

    Two-tier lookup:
    1. In-memory cache
    2. Database; a hit is added to the cache, a miss is not cached so a host
       linked later is picked up on its next event

    Args:
        guesty_account_id: Account ID as sent by Guesty
        conn: SQLAlchemy connection (only used on cache miss)

    Returns:
        Optional[int]: Host ID, or None if no host is linked to the account
    """
    host_id = get_cached_host_id(guesty_account_id)
    if host_id is not None:
        return host_id

    host_id = get_host_id_by_account(conn, guesty_account_id)
    if host_id is None:
        logger.warning("host_not_linked", guesty_account_id=guesty_account_id)
        return None

    with _cache_lock:
        _host_ids_by_account[guesty_account_id] = host_id
    logger.info("host_cached", guesty_account_id=guesty_account_id, host_id=host_id)
    return host_id


def clear_host_cache() -> None:
    with _cache_lock:
        _host_ids_by_account.clear()


def get_cache_size() -> int:
    """
    Get the current number of accounts in the cache.

    Returns:
        int: Number of cached account IDs
    """
    with _cache_lock:
        return len(_host_ids_by_account)
