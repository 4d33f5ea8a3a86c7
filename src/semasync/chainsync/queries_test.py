"""Tests for the retrying query wrappers."""

from __future__ import annotations

import pytest

from semasync.ethpy.base.errors import QueryError

from .queries import query_final_block, query_logs
from .sync_config import SyncConfig
from .test_fixtures import FakeChain
from .types import BlockRange


def _config(**kwargs) -> SyncConfig:
    return SyncConfig(retry_start_latency=0, **kwargs)


class TestQueryFinalBlock:
    """Tests for queries.py::query_final_block()."""

    def test_finality_lag(self):
        """The finality lag is applied by the oracle."""
        assert query_final_block(FakeChain(tip=1000), _config(finality=5)) == 995

    def test_retries(self, caplog: pytest.LogCaptureFixture):
        """Transient failures are retried and logged."""
        chain = FakeChain(tip=1000)
        chain.fail_next_heights = 2
        assert query_final_block(chain, _config(retry_count=3)) == 1000
        assert chain.height_queries == 3
        assert len([record for record in caplog.records if "Retry attempt" in record.message]) == 2

    def test_exhausted(self):
        """The original exception is kept on the QueryError."""
        chain = FakeChain(tip=1000)
        chain.fail_next_heights = 2
        with pytest.raises(QueryError) as excinfo:
            query_final_block(chain, _config(retry_count=2, finality=4))
        assert isinstance(excinfo.value.orig_exception, ConnectionError)
        assert excinfo.value.query_name == "get_current_final_block"
        assert excinfo.value.fn_kwargs == {"finality": 4}


class TestQueryLogs:
    """Tests for queries.py::query_logs()."""

    def test_single_query(self):
        """Exactly the requested range is fetched, once."""
        chain = FakeChain(log_blocks=[5, 10, 11])
        logs = query_logs(chain, BlockRange(0, 10), _config())
        assert [log["blockNumber"] for log in logs] == [5, 10]
        assert chain.fetched_ranges == [BlockRange(0, 10)]

    def test_empty_range(self):
        """No logs is an empty list."""
        assert query_logs(FakeChain(), BlockRange(0, 10), _config()) == []

    def test_exhausted(self):
        """The failed range is reported on the QueryError."""
        chain = FakeChain()
        chain.fail_next_fetches = 5
        with pytest.raises(QueryError) as excinfo:
            query_logs(chain, BlockRange(20, 30), _config(retry_count=5))
        assert isinstance(excinfo.value.orig_exception, TimeoutError)
        assert (excinfo.value.from_block, excinfo.value.to_block) == (20, 30)
        assert "InsertIdentity" in excinfo.value.query_name
        assert chain.fetched_ranges == []
