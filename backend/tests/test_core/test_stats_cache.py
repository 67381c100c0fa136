"""
Unit tests for the statistics TTL cache

A fake clock drives expiry so no test sleeps.
"""
import pytest
from unittest.mock import MagicMock, patch

from storefront.core.stats_cache import StatsCache, refresh_statistics_after_write


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return StatsCache(ttl_ms=30_000, clock=clock, warm_on_write=True)


def counting_fetcher():
    calls = []

    def fetch():
        calls.append(1)
        return {'total_orders': len(calls)}

    return fetch, calls


class TestGet:

    def test_same_object_within_ttl(self, cache, clock):
        fetch, calls = counting_fetcher()

        first = cache.get(fetch)
        clock.advance(29_999)
        second = cache.get(fetch)

        assert second is first
        assert len(calls) == 1

    def test_exactly_one_recompute_after_expiry(self, cache, clock):
        fetch, calls = counting_fetcher()

        first = cache.get(fetch)
        clock.advance(30_000)
        second = cache.get(fetch)
        third = cache.get(fetch)

        assert second is not first
        assert third is second
        assert len(calls) == 2

    def test_exactly_one_recompute_after_invalidate(self, cache):
        fetch, calls = counting_fetcher()

        cache.get(fetch)
        cache.invalidate()
        cache.get(fetch)
        cache.get(fetch)

        assert len(calls) == 2

    def test_fetcher_error_propagates_and_keeps_slot_empty(self, cache):
        fetch = MagicMock(side_effect=RuntimeError("db down"))

        with pytest.raises(RuntimeError):
            cache.get(fetch)

        assert cache.peek() is None


class TestIntrospection:

    def test_peek_does_not_warm(self, cache):
        fetch, calls = counting_fetcher()

        assert cache.peek() is None
        assert cache.debug_info() is None
        assert calls == []

    def test_debug_info_reports_expiry(self, cache, clock):
        cache.warm(lambda: {'ok': True})

        assert cache.debug_info() == {'expires_at': clock.now + 30_000}


class TestWarmOnWrite:

    def test_maybe_warm_skipped_when_disabled(self, clock):
        cache = StatsCache(ttl_ms=1000, clock=clock, warm_on_write=False)
        fetch = MagicMock(return_value={'x': 1})

        assert cache.maybe_warm(fetch) is None
        fetch.assert_not_called()

    def test_refresh_after_write_uses_background_tasks(self, cache):
        cache.warm(lambda: 'old')
        background_tasks = MagicMock()
        fetch = MagicMock(return_value='new')

        cache.refresh_after_write(fetch, background_tasks)

        assert cache.peek() is None
        background_tasks.add_task.assert_called_once_with(cache._warm_in_background, fetch)

    def test_background_warm_swallows_errors(self, cache):
        fetch = MagicMock(side_effect=RuntimeError("db down"))

        cache._warm_in_background(fetch)

        fetch.assert_called_once()
        assert cache.peek() is None

    def test_refresh_after_write_without_tasks_starts_thread(self, cache):
        fetch = MagicMock(return_value='fresh')

        with patch('storefront.core.stats_cache.threading.Thread') as mock_thread:
            cache.refresh_after_write(fetch)

        mock_thread.assert_called_once_with(
            target=cache._warm_in_background, args=(fetch,), daemon=True
        )
        mock_thread.return_value.start.assert_called_once()

    def test_refresh_statistics_after_write_never_raises(self):
        with patch('storefront.core.stats_cache.stats_cache.refresh_after_write',
                   side_effect=RuntimeError("boom")):
            refresh_statistics_after_write(MagicMock())
