"""Deterministic stand ins for the chain and the wall clock."""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import pytest

from ..types import BlockRange, LogEntry

# we need to use the outer name for fixtures
# pylint: disable=redefined-outer-name


class FakeClock:
    """A monotonic clock that only moves when told to, or when something sleeps on it."""

    def __init__(self, start: float = 0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        """Move the clock forward."""
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        """Record the sleep and move the clock forward by it."""
        self.sleeps.append(seconds)
        self.now += seconds


class FakeChain:
    """A block height oracle and log fetcher backed by in-memory logs.

    Every query is recorded. Queries can be made to fail or to take time on a FakeClock.
    """

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        tip: int | Iterable[int] = 0,
        log_blocks: Sequence[int] = (),
        clock: FakeClock | None = None,
        query_seconds: float = 0,
    ) -> None:
        """Initialize the chain.

        Arguments
        ---------
        tip: int | Iterable[int], optional
            The chain tip. An iterable yields the tip for successive height queries,
            repeating its last value once exhausted.
        log_blocks: Sequence[int], optional
            One InsertIdentity log is emitted in each listed block.
        clock: FakeClock | None, optional
            Advanced by query_seconds on every query.
        query_seconds: float, optional
            Simulated duration of each query.
        """
        # pylint: disable=too-many-arguments
        self._tips: Iterator[int] | None = None
        if isinstance(tip, int):
            self.tip = tip
        else:
            self._tips = iter(tip)
            self.tip = next(self._tips)
        self.logs: list[dict] = [
            {"blockNumber": block, "logIndex": index, "args": {"_index": index}}
            for index, block in enumerate(sorted(log_blocks))
        ]
        self.clock = clock
        self.query_seconds = query_seconds
        self.fetched_ranges: list[BlockRange] = []
        self.height_queries = 0
        self.fail_next_fetches = 0
        self.fail_next_heights = 0

    def _tick(self) -> None:
        if self.clock is not None:
            self.clock.advance(self.query_seconds)

    def get_current_final_block(self, finality: int) -> int:
        """Returns the tip minus the finality lag."""
        self._tick()
        self.height_queries += 1
        if self.height_queries > 1 and self._tips is not None:
            self.tip = next(self._tips, self.tip)
        if self.fail_next_heights > 0:
            self.fail_next_heights -= 1
            raise ConnectionError("height query failed")
        return self.tip - finality

    def get_event_logs(self, event_name: str, from_block: int, to_block: int) -> list[LogEntry]:
        """Returns the logs with from_block <= blockNumber <= to_block."""
        self._tick()
        if from_block > to_block:
            raise ValueError(f"{from_block=} must not be greater than {to_block=}")
        if self.fail_next_fetches > 0:
            self.fail_next_fetches -= 1
            raise TimeoutError(f"{event_name} log query timed out")
        self.fetched_ranges.append(BlockRange(from_block, to_block))
        return [log for log in self.logs if from_block <= log["blockNumber"] <= to_block]


class StopAfter:
    """A stop event that reports set after a number of checks."""

    def __init__(self, checks: int) -> None:
        self.remaining = checks

    def is_set(self) -> bool:
        """Returns True once the allowed checks are used up."""
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False


class BatchRecorder:
    """A log batch handler that remembers what it was given."""

    def __init__(self) -> None:
        self.batches: list[tuple[list[LogEntry], BlockRange]] = []

    def __call__(self, logs: Sequence[LogEntry], block_range: BlockRange) -> None:
        self.batches.append((list(logs), block_range))

    @property
    def block_numbers(self) -> list[int]:
        """The block numbers of every delivered log, in delivery order."""
        return [log["blockNumber"] for logs, _ in self.batches for log in logs]


@pytest.fixture
def fake_clock() -> FakeClock:
    """Fixture for a clock starting at zero."""
    return FakeClock()


@pytest.fixture
def batch_recorder() -> BatchRecorder:
    """Fixture for a recording log batch handler."""
    return BatchRecorder()
