"""Defines the sync loop configuration from env vars."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from semasync.ethpy.base import RetryCallOptions
from semasync.ethpy.base.errors import ConfigError

INSERT_IDENTITY_EVENT = "InsertIdentity"


def validate_num(value: int | float, name: str, minimum_inclusive: int = 0) -> int:
    """Check that a value is a whole number no smaller than the minimum.

    Arguments
    ---------
    value: int | float
        The value to check. Floats are accepted if they are integral, e.g. 1000.0.
    name: str
        The name shown in the error message, e.g. "-f/--finality".
    minimum_inclusive: int, optional
        The smallest allowed value. Defaults to 0.

    Returns
    -------
    int
        The value as an int.
    """
    if minimum_inclusive == 0:
        requirement = "a non-negative integer"
    elif minimum_inclusive == 1:
        requirement = "a positive integer"
    else:
        requirement = f"an integer >= {minimum_inclusive}"
    message = f"invalid value for {name}; must be {requirement}"
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(message)
    if isinstance(value, float) and (not math.isfinite(value) or math.floor(value) != value):
        raise ConfigError(message)
    if value < minimum_inclusive:
        raise ConfigError(message)
    return int(value)


@dataclass(frozen=True)
class SyncConfig:
    """Settings for the backfill and incremental sync loops. Validated on construction."""

    # pylint: disable=too-many-instance-attributes

    finality: int = 0
    """The number of blocks behind the chain tip to consider final."""
    incremental_interval_ms: int = 5000
    """The minimum duration of each incremental loop iteration."""
    incremental_blocks_per_query: int = 1000
    """How far the incremental window advances after each fetch."""
    backfill_blocks_per_query: int = 1000
    """The window width used when downloading historical logs."""
    backfill_interval_ms: int = 50
    """The minimum duration of each backfill loop iteration."""
    event_name: str = INSERT_IDENTITY_EVENT
    """The contract event to sync."""
    retry_count: int = 5
    """Attempts made for each block height or log range query.
    Each attempt is bounded by the rpc request_timeout of the chain connection."""
    retry_start_latency: float = 0.5
    """Seconds to wait after the first failed attempt."""
    retry_backoff_multiplier: float = 2
    """Factor applied to the wait after each further failed attempt."""
    max_consecutive_failures: int | None = 10
    """Failed incremental iterations tolerated in a row before giving up. None never gives up."""

    def __post_init__(self):
        # Coerce integral floats so the stored values are always ints
        object.__setattr__(self, "finality", validate_num(self.finality, "finality", 0))
        for name in [
            "incremental_interval_ms",
            "incremental_blocks_per_query",
            "backfill_blocks_per_query",
            "backfill_interval_ms",
            "retry_count",
        ]:
            object.__setattr__(self, name, validate_num(getattr(self, name), name, 1))
        if self.max_consecutive_failures is not None:
            object.__setattr__(
                self,
                "max_consecutive_failures",
                validate_num(self.max_consecutive_failures, "max_consecutive_failures", 0),
            )
        if not self.event_name:
            raise ConfigError("event_name must not be empty")
        if self.retry_start_latency < 0:
            raise ConfigError(f"retry_start_latency must be non-negative, got {self.retry_start_latency}")
        if self.retry_backoff_multiplier < 1:
            raise ConfigError(f"retry_backoff_multiplier must be at least 1, got {self.retry_backoff_multiplier}")

    @property
    def retry_options(self) -> RetryCallOptions:
        """The backoff parameters passed to retry_call."""
        return RetryCallOptions(
            start_latency=self.retry_start_latency,
            backoff_multiplier=self.retry_backoff_multiplier,
        )


# Environment variable name -> SyncConfig field
_ENV_FIELDS = {
    "FINALITY": "finality",
    "INTERVAL_MS": "incremental_interval_ms",
    "MAIN_BLOCKS_PER_QUERY": "incremental_blocks_per_query",
    "INITIAL_BLOCKS_PER_QUERY": "backfill_blocks_per_query",
    "INITIAL_QUERY_INTERVAL_MS": "backfill_interval_ms",
    "RETRY_COUNT": "retry_count",
}


def parse_number(name: str, raw_value: str) -> int | float:
    """Parse an int if possible, else a float, so validation can reject fractional values by name."""
    try:
        return int(raw_value)
    except ValueError:
        pass
    try:
        return float(raw_value)
    except ValueError as err:
        raise ConfigError(f"invalid value for {name}; {raw_value!r} is not a number") from err


def build_sync_config(dotenv_file: str = "eth.env") -> SyncConfig:
    """Build a sync config that looks for environmental variables.
    If env var exists, use that, otherwise, default.

    Arguments
    ---------
    dotenv_file: str, optional
        The path location of the dotenv file to load from.
        Defaults to "eth.env".

    Returns
    -------
    SyncConfig
        The validated sync settings.
    """
    if os.path.exists(dotenv_file):
        load_dotenv(dotenv_file)

    arg_dict: dict[str, int | float] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw_value = os.getenv(env_name)
        if raw_value is not None:
            arg_dict[field_name] = parse_number(env_name, raw_value)
    return SyncConfig(**arg_dict)  # type: ignore
