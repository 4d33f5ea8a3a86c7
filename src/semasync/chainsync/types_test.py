"""Tests for the shared sync types."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from .types import BlockRange, get_log_block_number


class TestBlockRange:
    """Tests for BlockRange."""

    def test_inclusive_size(self):
        """Both ends are part of the range."""
        assert BlockRange(0, 100).num_blocks == 101
        assert BlockRange(7, 7).num_blocks == 1

    def test_str(self):
        """Ranges print as inclusive intervals."""
        assert str(BlockRange(101, 201)) == "[101, 201]"

    @pytest.mark.parametrize("from_block, to_block", [(-1, 5), (6, 5)])
    def test_invalid(self, from_block: int, to_block: int):
        """Negative or inverted ranges are rejected."""
        with pytest.raises(ValueError):
            BlockRange(from_block, to_block)

    def test_frozen(self):
        """Ranges can not be modified."""
        block_range = BlockRange(0, 1)
        with pytest.raises(FrozenInstanceError):
            block_range.to_block = 2  # type: ignore


def test_get_log_block_number():
    """The block number is read from the log mapping."""
    assert get_log_block_number({"blockNumber": 42, "args": {}}) == 42
