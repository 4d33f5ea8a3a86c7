"""Perpetual log polling that follows the finalized chain tip."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from semasync.ethpy.base.errors import QueryError

from .queries import query_final_block, query_logs
from .rate_limit import RateLimiter
from .sync_config import SyncConfig
from .types import BlockHeightOracle, BlockRange, LogBatchHandler, RangeLogFetcher, StopEvent


@dataclass(frozen=True)
class IncrementalCursor:
    """The nominal incremental window.

    to_block is stored unclamped; the clamp to the final block only applies to the query issued.
    """

    from_block: int
    to_block: int
    last_final_block: int | None = None


@dataclass(frozen=True)
class IncrementalStep:
    """What one iteration should do for a given final block."""

    query_range: BlockRange | None
    """The range to fetch, or None when the window is not final yet."""
    next_cursor: IncrementalCursor
    """The cursor to keep once the step has been carried out."""


def initial_incremental_cursor(start_block: int, blocks_per_query: int) -> IncrementalCursor:
    """The first window starts at the backfill handoff block."""
    return IncrementalCursor(from_block=start_block, to_block=start_block + blocks_per_query)


def plan_incremental_step(
    cursor: IncrementalCursor, current_final_block: int, blocks_per_query: int
) -> IncrementalStep:
    """Decide the query and the following cursor for one iteration.

    Arguments
    ---------
    cursor: IncrementalCursor
        The current window.
    current_final_block: int
        The finality adjusted chain height read this iteration.
    blocks_per_query: int
        The incremental window width setting.

    Returns
    -------
    IncrementalStep
        No query and an unmoved window if from_block is past the final block.
        Otherwise the window clamped to the final block, and a window advanced by the full width.
    """
    if cursor.from_block > current_final_block:
        return IncrementalStep(query_range=None, next_cursor=replace(cursor, last_final_block=current_final_block))
    query_range = BlockRange(cursor.from_block, min(cursor.to_block, current_final_block))
    next_cursor = IncrementalCursor(
        from_block=cursor.from_block + blocks_per_query,
        to_block=cursor.to_block + blocks_per_query,
        last_final_block=current_final_block,
    )
    return IncrementalStep(query_range=query_range, next_cursor=next_cursor)


class IncrementalSynchronizer:
    """Polls for new logs in windows that only advance once the chain has finalized them."""

    # pylint: disable=too-many-instance-attributes

    def __init__(
        self,
        oracle: BlockHeightOracle,
        fetcher: RangeLogFetcher,
        start_block: int,
        sync_config: SyncConfig,
        handler: LogBatchHandler | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Arguments
        ---------
        oracle: BlockHeightOracle
            The block height source.
        fetcher: RangeLogFetcher
            The log source.
        start_block: int
            The first block to fetch, usually the backfill handoff block.
        sync_config: SyncConfig
            Supplies the finality, window width, interval and retry settings.
        handler: LogBatchHandler | None, optional
            Called with each non-empty batch of logs and the range it was fetched for.
        rate_limiter: RateLimiter | None, optional
            Throttle for the iterations. Defaults to one using the incremental interval.
        """
        # pylint: disable=too-many-arguments
        if start_block < 0:
            raise ValueError(f"{start_block=} must be non-negative")
        self.oracle = oracle
        self.fetcher = fetcher
        self.sync_config = sync_config
        self.handler = handler
        if rate_limiter is None:
            rate_limiter = RateLimiter(sync_config.incremental_interval_ms)
        self.rate_limiter = rate_limiter
        self.cursor = initial_incremental_cursor(start_block, sync_config.incremental_blocks_per_query)
        self.iterations = 0
        self.consecutive_failures = 0

    def step(self) -> BlockRange | None:
        """Run one iteration body without throttling.

        Returns
        -------
        BlockRange | None
            The range that was fetched, or None if the window was not final yet.
        """
        current_final_block = query_final_block(self.oracle, self.sync_config)
        step = plan_incremental_step(self.cursor, current_final_block, self.sync_config.incremental_blocks_per_query)
        if step.query_range is None:
            logging.debug(
                "Waiting for block %s to finalize, current final block %s", self.cursor.from_block, current_final_block
            )
            self.cursor = step.next_cursor
            return None
        logs = query_logs(self.fetcher, step.query_range, self.sync_config)
        if logs:
            logging.info("Fetched %s logs for blocks %s", len(logs), step.query_range)
            if self.handler is not None:
                self.handler(logs, step.query_range)
        else:
            logging.debug("No logs for blocks %s", step.query_range)
        self.cursor = step.next_cursor
        return step.query_range

    def run_iteration(self) -> BlockRange | None:
        """Run one throttled iteration, treating a failed query as recoverable.

        A QueryError leaves the cursor in place so the same window is tried again next time.
        It is re-raised once the failures in a row exceed max_consecutive_failures.

        Returns
        -------
        BlockRange | None
            The range that was fetched, or None if nothing was fetched.
        """
        self.iterations += 1
        try:
            fetched_range = self.rate_limiter.call(self.step)
        except QueryError as err:
            self.consecutive_failures += 1
            max_failures = self.sync_config.max_consecutive_failures
            logging.error(
                "Incremental sync iteration failed (%s in a row) at blocks [%s, %s]: %s",
                self.consecutive_failures,
                self.cursor.from_block,
                self.cursor.to_block,
                repr(err.orig_exception),
            )
            if max_failures is not None and self.consecutive_failures > max_failures:
                raise
            return None
        self.consecutive_failures = 0
        return fetched_range

    def run(self, stop_event: StopEvent | None = None, max_iterations: int | None = None) -> None:
        """Loop until stopped.

        Arguments
        ---------
        stop_event: StopEvent | None, optional
            Checked before each iteration. Without one the loop only ends on an error.
        max_iterations: int | None, optional
            Stop after this many iterations. Defaults to no limit.
        """
        logging.info("Monitoring %s logs from block %s", self.sync_config.event_name, self.cursor.from_block)
        while max_iterations is None or self.iterations < max_iterations:
            if stop_event is not None and stop_event.is_set():
                logging.info("Incremental sync stopped at block %s", self.cursor.from_block)
                return
            self.run_iteration()
