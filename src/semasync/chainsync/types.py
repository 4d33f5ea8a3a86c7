"""Types shared by the sync loops and the chain collaborators they drive."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

# A decoded event log. At minimum it has a "blockNumber"; web3 returns EventData here.
LogEntry = Mapping[str, Any]


@dataclass(frozen=True)
class BlockRange:
    """An inclusive [from_block, to_block] window."""

    from_block: int
    to_block: int

    def __post_init__(self):
        if self.from_block < 0:
            raise ValueError(f"{self.from_block=} must be non-negative")
        if self.from_block > self.to_block:
            raise ValueError(f"{self.from_block=} must not be greater than {self.to_block=}")

    @property
    def num_blocks(self) -> int:
        """The number of blocks in the window."""
        return self.to_block - self.from_block + 1

    def __str__(self) -> str:
        return f"[{self.from_block}, {self.to_block}]"


# Downstream consumer, called with each non-empty batch and the range it came from
LogBatchHandler = Callable[[Sequence[LogEntry], BlockRange], None]


class BlockHeightOracle(Protocol):
    """Answers the finality adjusted chain height."""

    def get_current_final_block(self, finality: int) -> int:
        """Return the chain tip minus the finality lag."""


class RangeLogFetcher(Protocol):
    """Answers the event logs in a block range."""

    def get_event_logs(self, event_name: str, from_block: int, to_block: int) -> Sequence[LogEntry]:
        """Return the logs for the event in the inclusive range, with one query."""


class StopEvent(Protocol):
    """Cancellation signal checked between loop iterations, e.g. a threading.Event."""

    def is_set(self) -> bool:
        """Return True once the loop should stop."""


def get_log_block_number(log: LogEntry) -> int:
    """Returns the block number a log was emitted in."""
    return int(log["blockNumber"])
