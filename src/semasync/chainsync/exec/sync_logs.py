"""Backfill then follow the chain, delivering log batches to a handler."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..backfill import BackfillResult, backfill_logs
from ..incremental import IncrementalSynchronizer
from ..queries import query_final_block
from ..rate_limit import RateLimiter
from ..sync_config import SyncConfig
from ..types import BlockHeightOracle, LogBatchHandler, RangeLogFetcher, StopEvent


@dataclass
class SyncResult:
    """State left behind when sync_logs returns."""

    backfill: BackfillResult
    start_block: int | None = None
    """The incremental handoff block, None if the backfill was stopped early."""
    incremental: IncrementalSynchronizer | None = None


def backfill_target_block(current_final_block: int) -> int:
    """The backfill runs one block short of the final block, and never below genesis."""
    if current_final_block <= 0:
        return 0
    return current_final_block - 1


def sync_logs(
    oracle: BlockHeightOracle,
    fetcher: RangeLogFetcher,
    sync_config: SyncConfig,
    handler: LogBatchHandler | None = None,
    stop_event: StopEvent | None = None,
    sleep: Callable[[float], Any] | None = None,
    clock: Callable[[], float] | None = None,
    max_incremental_iterations: int | None = None,
) -> SyncResult:
    """Execute the two phase sync pipeline.

    The final block is read once at startup. The backfill covers genesis up to one block short of it,
    then the incremental sync takes over right after the highest block seen.
    Only returns once stopped, or after max_incremental_iterations.

    Arguments
    ---------
    oracle: BlockHeightOracle
        The block height source.
    fetcher: RangeLogFetcher
        The log source. SemacaulkReadInterface is both oracle and fetcher.
    sync_config: SyncConfig
        Finality, window, interval and retry settings.
    handler: LogBatchHandler | None, optional
        Called with every non-empty batch of logs and its block range, in ascending order.
    stop_event: StopEvent | None, optional
        Checked between iterations of both phases.
    sleep: Callable[[float], Any] | None, optional
        Used for the rate limiting waits. Defaults to time.sleep.
    clock: Callable[[], float] | None, optional
        Monotonic clock in seconds for the rate limiting. Defaults to time.monotonic.
    max_incremental_iterations: int | None, optional
        Stop the incremental phase after this many iterations. Defaults to no limit.

    Returns
    -------
    SyncResult
        The backfill result and the incremental synchronizer.
    """
    # pylint: disable=too-many-arguments
    current_final_block = max(query_final_block(oracle, sync_config), 0)
    target_block = backfill_target_block(current_final_block)
    logging.info("Current final block is %s (finality %s)", current_final_block, sync_config.finality)

    backfill = backfill_logs(
        fetcher,
        target_block,
        sync_config,
        handler=handler,
        rate_limiter=RateLimiter(sync_config.backfill_interval_ms, clock=clock, sleep=sleep),
        stop_event=stop_event,
    )
    if not backfill.completed:
        return SyncResult(backfill=backfill)

    start_block = backfill.next_start_block
    synchronizer = IncrementalSynchronizer(
        oracle,
        fetcher,
        start_block,
        sync_config,
        handler=handler,
        rate_limiter=RateLimiter(sync_config.incremental_interval_ms, clock=clock, sleep=sleep),
    )
    synchronizer.run(stop_event=stop_event, max_iterations=max_incremental_iterations)
    return SyncResult(backfill=backfill, start_block=start_block, incremental=synchronizer)
