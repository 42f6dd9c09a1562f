from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest

from sync_guesty.cache import TokenCache

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
@patch("sync_guesty.cache.utc_now", return_value=NOW)
def test_serves_token_outside_buffer(mock_now: Mock) -> None:
    cache = TokenCache(buffer_seconds=300)
    cache.set(7, "tok", NOW + timedelta(hours=1))

    assert cache.get(7) == "tok"
    assert cache.size() == 1


@pytest.mark.unit
@patch("sync_guesty.cache.utc_now", return_value=NOW)
def test_evicts_token_inside_buffer(mock_now: Mock) -> None:
    cache = TokenCache(buffer_seconds=300)
    cache.set(7, "tok", NOW + timedelta(seconds=300))

    assert cache.get(7) is None
    assert cache.size() == 0


@pytest.mark.unit
def test_invalidate_and_clear() -> None:
    cache = TokenCache()
    far = NOW + timedelta(days=365 * 50)
    cache.set(1, "a", far)
    cache.set(2, "b", far)

    cache.invalidate(1)
    cache.invalidate(99)

    assert cache.get(1) is None
    assert cache.get(2) == "b"

    cache.clear()
    assert cache.size() == 0
