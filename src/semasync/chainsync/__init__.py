"""Backfill and incremental sync of contract event logs."""

from .backfill import BackfillCursor, BackfillResult, backfill_logs, compute_handoff_block
from .incremental import IncrementalCursor, IncrementalSynchronizer, plan_incremental_step
from .rate_limit import RateLimiter
from .sync_config import SyncConfig, build_sync_config, validate_num
from .types import BlockHeightOracle, BlockRange, LogBatchHandler, LogEntry, RangeLogFetcher, StopEvent
