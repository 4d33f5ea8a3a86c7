"""Tests for the historical backfill."""

from __future__ import annotations

import math

import pytest

from semasync.ethpy.base.errors import QueryError

from .backfill import (
    BackfillCursor,
    backfill_is_done,
    backfill_logs,
    compute_handoff_block,
    initial_backfill_cursor,
    next_backfill_cursor,
)
from .rate_limit import RateLimiter
from .sync_config import SyncConfig
from .test_fixtures import BatchRecorder, FakeChain, FakeClock, StopAfter
from .types import BlockRange


def _config(blocks_per_query: int = 100, **kwargs) -> SyncConfig:
    return SyncConfig(backfill_blocks_per_query=blocks_per_query, retry_start_latency=0, **kwargs)


def _limiter(clock: FakeClock, interval_ms: int = 50) -> RateLimiter:
    return RateLimiter(interval_ms, clock=clock, sleep=clock.sleep)


class TestBackfillSteps:
    """Tests for the pure cursor functions."""

    def test_initial_cursor(self):
        """The first window starts at genesis."""
        assert initial_backfill_cursor(100) == BackfillCursor(0, 100)

    def test_next_cursor(self):
        """The next window starts right after the previous one ends."""
        assert next_backfill_cursor(BackfillCursor(0, 100), 100) == BackfillCursor(101, 201)
        assert next_backfill_cursor(BackfillCursor(101, 201), 100) == BackfillCursor(202, 302)

    def test_done(self):
        """Done once the window starts past the target."""
        assert not backfill_is_done(BackfillCursor(0, 100), 0)
        assert not backfill_is_done(BackfillCursor(250, 350), 250)
        assert backfill_is_done(BackfillCursor(251, 351), 250)

    @pytest.mark.parametrize(
        "max_block_number, target_block, expected",
        [(None, 249, 250), (100, 249, 250), (249, 249, 250), (300, 249, 301), (None, 0, 1), (0, 0, 1)],
    )
    def test_handoff(self, max_block_number, target_block, expected):
        """The handoff is max(M + 1, T + 1)."""
        assert compute_handoff_block(max_block_number, target_block) == expected


class TestBackfillLogs:
    """Tests for backfill_logs."""

    def test_windows_are_not_clamped_to_target(self, fake_clock: FakeClock):
        """Width 100 and target 250 query three windows, the last one past the target."""
        chain = FakeChain()
        result = backfill_logs(chain, 250, _config(100), rate_limiter=_limiter(fake_clock))
        assert chain.fetched_ranges == [BlockRange(0, 100), BlockRange(101, 201), BlockRange(202, 302)]
        assert result.num_windows == 3
        assert result.last_range == BlockRange(202, 302)
        assert result.completed

    @pytest.mark.parametrize("target_block", [0, 1, 99, 100, 101, 250, 1000, 1234])
    @pytest.mark.parametrize("blocks_per_query", [1, 7, 100])
    def test_coverage(self, fake_clock: FakeClock, target_block: int, blocks_per_query: int):
        """Windows tile [0, last window end] with no gaps or overlaps and contain the target."""
        chain = FakeChain()
        backfill_logs(chain, target_block, _config(blocks_per_query), rate_limiter=_limiter(fake_clock))
        ranges = chain.fetched_ranges
        assert ranges[0].from_block == 0
        for earlier, later in zip(ranges, ranges[1:]):
            assert later.from_block == earlier.to_block + 1
        assert all(block_range.num_blocks == blocks_per_query + 1 for block_range in ranges)
        assert ranges[-1].from_block <= target_block <= ranges[-1].to_block
        assert len(ranges) == math.ceil((target_block + 1) / (blocks_per_query + 1))

    def test_zero_target_still_queries(self, fake_clock: FakeClock):
        """A young chain still gets one window."""
        chain = FakeChain(log_blocks=[0])
        result = backfill_logs(chain, 0, _config(1000), rate_limiter=_limiter(fake_clock))
        assert chain.fetched_ranges == [BlockRange(0, 1000)]
        assert result.max_block_number == 0
        assert result.next_start_block == 1

    def test_accumulates_logs(self, fake_clock: FakeClock):
        """All logs are kept in block order with the highest block recorded."""
        chain = FakeChain(log_blocks=[3, 50, 101, 180, 240])
        result = backfill_logs(chain, 250, _config(100), rate_limiter=_limiter(fake_clock))
        assert [log["blockNumber"] for log in result.logs] == [3, 50, 101, 180, 240]
        assert result.max_block_number == 240
        assert result.next_start_block == 251

    def test_over_fetched_logs_move_handoff(self, fake_clock: FakeClock):
        """Logs found past the target by the last window push the handoff forward."""
        chain = FakeChain(log_blocks=[10, 290])
        result = backfill_logs(chain, 250, _config(100), rate_limiter=_limiter(fake_clock))
        assert result.max_block_number == 290
        assert result.next_start_block == 291

    def test_no_logs(self, fake_clock: FakeClock):
        """Without logs the handoff is just past the target."""
        result = backfill_logs(FakeChain(), 250, _config(100), rate_limiter=_limiter(fake_clock))
        assert result.logs == []
        assert result.max_block_number is None
        assert result.next_start_block == 251

    def test_handler_gets_non_empty_windows(self, fake_clock: FakeClock, batch_recorder: BatchRecorder):
        """The handler sees each non-empty window once, in order."""
        chain = FakeChain(log_blocks=[5, 7, 250])
        backfill_logs(chain, 250, _config(100), handler=batch_recorder, rate_limiter=_limiter(fake_clock))
        assert [block_range for _, block_range in batch_recorder.batches] == [BlockRange(0, 100), BlockRange(202, 302)]
        assert batch_recorder.block_numbers == [5, 7, 250]

    def test_each_window_is_rate_limited(self, fake_clock: FakeClock):
        """Every window is padded to the backfill interval."""
        chain = FakeChain(clock=fake_clock, query_seconds=0.01)
        backfill_logs(chain, 250, _config(100), rate_limiter=_limiter(fake_clock, 50))
        assert fake_clock.sleeps == [pytest.approx(0.04)] * 3

    def test_default_rate_limiter_uses_backfill_interval(self, monkeypatch: pytest.MonkeyPatch):
        """Without an explicit limiter the backfill interval is used."""
        sleeps = []
        monkeypatch.setattr("semasync.chainsync.rate_limit.time.sleep", sleeps.append)
        backfill_logs(FakeChain(), 5, _config(10, backfill_interval_ms=20))
        assert len(sleeps) == 1
        assert 0 < sleeps[0] <= 0.02

    def test_stop_event(self, fake_clock: FakeClock):
        """A stop request ends the backfill between windows."""
        chain = FakeChain(log_blocks=[150])
        result = backfill_logs(
            chain, 1000, _config(100), rate_limiter=_limiter(fake_clock), stop_event=StopAfter(2)
        )
        assert not result.completed
        assert result.num_windows == 2
        assert chain.fetched_ranges == [BlockRange(0, 100), BlockRange(101, 201)]

    def test_transient_failures_are_retried(self, fake_clock: FakeClock):
        """A window that fails fewer times than the retry count still completes."""
        chain = FakeChain(log_blocks=[42])
        chain.fail_next_fetches = 2
        result = backfill_logs(chain, 50, _config(100, retry_count=3), rate_limiter=_limiter(fake_clock))
        assert result.completed
        assert result.max_block_number == 42

    def test_exhausted_retries_raise_query_error(self, fake_clock: FakeClock):
        """A window that keeps failing aborts the backfill."""
        chain = FakeChain()
        chain.fail_next_fetches = 3
        with pytest.raises(QueryError) as excinfo:
            backfill_logs(chain, 50, _config(100, retry_count=3), rate_limiter=_limiter(fake_clock))
        assert excinfo.value.from_block == 0
        assert excinfo.value.to_block == 100
        assert isinstance(excinfo.value.orig_exception, TimeoutError)

    def test_negative_target(self):
        """Targets below genesis are a programming error."""
        with pytest.raises(ValueError):
            backfill_logs(FakeChain(), -1, _config())
