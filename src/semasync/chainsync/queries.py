"""Retrying wrappers around the chain collaborators.

Both wrappers turn an exhausted retry budget into a QueryError so callers can tell a failed
query apart from a bug in their own code.
"""

from __future__ import annotations

from semasync.ethpy.base import retry_call
from semasync.ethpy.base.errors import QueryError

from .sync_config import SyncConfig
from .types import BlockHeightOracle, BlockRange, LogEntry, RangeLogFetcher


def query_final_block(oracle: BlockHeightOracle, sync_config: SyncConfig) -> int:
    """Get the finality adjusted chain height, with retries.

    Arguments
    ---------
    oracle: BlockHeightOracle
        The block height source.
    sync_config: SyncConfig
        Supplies the finality lag and retry settings.

    Returns
    -------
    int
        The tip minus the finality lag. May be negative on a young chain.
    """
    try:
        return retry_call(
            sync_config.retry_count,
            None,
            oracle.get_current_final_block,
            sync_config.finality,
            options=sync_config.retry_options,
        )
    except Exception as err:
        raise QueryError(
            "Error in block height query",
            orig_exception=err,
            query_name="get_current_final_block",
            fn_kwargs={"finality": sync_config.finality},
        ) from err


def query_logs(fetcher: RangeLogFetcher, block_range: BlockRange, sync_config: SyncConfig) -> list[LogEntry]:
    """Get the configured event's logs for one block range, with retries.

    Arguments
    ---------
    fetcher: RangeLogFetcher
        The log source.
    block_range: BlockRange
        The inclusive range to query. Never paginated.
    sync_config: SyncConfig
        Supplies the event name and retry settings.

    Returns
    -------
    list[LogEntry]
        The logs in the range, possibly empty.
    """
    try:
        logs = retry_call(
            sync_config.retry_count,
            None,
            fetcher.get_event_logs,
            sync_config.event_name,
            block_range.from_block,
            block_range.to_block,
            options=sync_config.retry_options,
        )
    except Exception as err:
        raise QueryError(
            "Error in log range query",
            orig_exception=err,
            query_name=f"get_event_logs({sync_config.event_name})",
            from_block=block_range.from_block,
            to_block=block_range.to_block,
        ) from err
    return list(logs)
