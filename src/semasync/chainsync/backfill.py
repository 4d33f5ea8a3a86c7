"""Historical log download from genesis up to a target block."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .queries import query_logs
from .rate_limit import RateLimiter
from .sync_config import SyncConfig
from .types import BlockRange, LogBatchHandler, LogEntry, RangeLogFetcher, StopEvent, get_log_block_number


@dataclass(frozen=True)
class BackfillCursor:
    """The next window the backfill will query."""

    from_block: int
    to_block: int

    @property
    def block_range(self) -> BlockRange:
        """The window as a BlockRange."""
        return BlockRange(self.from_block, self.to_block)


def initial_backfill_cursor(blocks_per_query: int) -> BackfillCursor:
    """The first window always starts at genesis."""
    return BackfillCursor(from_block=0, to_block=blocks_per_query)


def next_backfill_cursor(cursor: BackfillCursor, blocks_per_query: int) -> BackfillCursor:
    """Step to the window right after the current one.

    Arguments
    ---------
    cursor: BackfillCursor
        The window that was just queried.
    blocks_per_query: int
        The backfill window width setting.

    Returns
    -------
    BackfillCursor
        The next window, starting one block past the end of the current one.
    """
    from_block = cursor.to_block + 1
    return BackfillCursor(from_block=from_block, to_block=from_block + blocks_per_query)


def backfill_is_done(cursor: BackfillCursor, target_block: int) -> bool:
    """The backfill stops once a window would start past the target."""
    return cursor.from_block > target_block


def compute_handoff_block(max_block_number: int | None, target_block: int) -> int:
    """The block the incremental sync starts from.

    Never moves backwards, and always starts strictly after the target even when
    no logs were found.

    Arguments
    ---------
    max_block_number: int | None
        The highest block number among the backfilled logs, or None if there were none.
    target_block: int
        The target block the backfill ran up to.

    Returns
    -------
    int
        max(max_block_number + 1, target_block + 1)
    """
    if max_block_number is None:
        return target_block + 1
    return max(max_block_number + 1, target_block + 1)


@dataclass
class BackfillResult:
    """Everything the backfill collected."""

    target_block: int
    logs: list[LogEntry] = field(default_factory=list)
    max_block_number: int | None = None
    last_range: BlockRange | None = None
    num_windows: int = 0
    completed: bool = False
    """False if a stop request ended the backfill early."""

    @property
    def next_start_block(self) -> int:
        """The handoff point for the incremental sync."""
        return compute_handoff_block(self.max_block_number, self.target_block)


def backfill_logs(
    fetcher: RangeLogFetcher,
    target_block: int,
    sync_config: SyncConfig,
    handler: LogBatchHandler | None = None,
    rate_limiter: RateLimiter | None = None,
    stop_event: StopEvent | None = None,
) -> BackfillResult:
    """Download all logs from block 0 through the window containing the target block.

    Windows are not clamped to the target, so the final window may extend past it.

    Arguments
    ---------
    fetcher: RangeLogFetcher
        The log source.
    target_block: int
        The last block that must be covered. A target of 0 still queries one window.
    sync_config: SyncConfig
        Supplies the window width, interval, event name and retry settings.
    handler: LogBatchHandler | None, optional
        Called with each non-empty window's logs as they arrive.
    rate_limiter: RateLimiter | None, optional
        Throttle for the window queries. Defaults to one using the backfill interval.
    stop_event: StopEvent | None, optional
        Checked before each window; once set, the partial result is returned.

    Returns
    -------
    BackfillResult
        The accumulated logs, the highest block number seen, and window bookkeeping.
    """
    # pylint: disable=too-many-arguments
    if target_block < 0:
        raise ValueError(f"{target_block=} must be non-negative")
    if rate_limiter is None:
        rate_limiter = RateLimiter(sync_config.backfill_interval_ms)
    blocks_per_query = sync_config.backfill_blocks_per_query

    result = BackfillResult(target_block=target_block)
    cursor = initial_backfill_cursor(blocks_per_query)
    logging.info("Backfilling %s logs up to block %s", sync_config.event_name, target_block)
    while not backfill_is_done(cursor, target_block):
        if stop_event is not None and stop_event.is_set():
            logging.info("Backfill stopped before block %s", cursor.from_block)
            return result
        block_range = cursor.block_range
        logs = rate_limiter.call(query_logs, fetcher, block_range, sync_config)
        logging.info(
            "Fetched %s logs for blocks %s in %.0f ms", len(logs), block_range, rate_limiter.last_elapsed_ms
        )
        result.num_windows += 1
        result.last_range = block_range
        if logs:
            result.logs.extend(logs)
            window_max = max(get_log_block_number(log) for log in logs)
            if result.max_block_number is None or window_max > result.max_block_number:
                result.max_block_number = window_max
            if handler is not None:
                handler(logs, block_range)
        cursor = next_backfill_cursor(cursor, blocks_per_query)
    result.completed = True
    logging.info(
        "Backfill done: %s logs in %s windows, incremental sync starts at block %s",
        len(result.logs),
        result.num_windows,
        result.next_start_block,
    )
    return result
