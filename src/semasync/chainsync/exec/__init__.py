"""Entrypoints for running the sync pipeline."""

from .sync_logs import SyncResult, backfill_target_block, sync_logs
