"""Error handling for the sync pipeline"""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base class for errors raised by semasync."""


class ConfigError(SyncError, ValueError):
    """Invalid user supplied configuration, e.g. a negative finality or a malformed address."""


class ConnectivityError(SyncError):
    """The rpc is unreachable or the contract failed its sanity check."""

    def __init__(
        self,
        *args,
        orig_exception: BaseException | None = None,
        rpc_uri: str | None = None,
        contract_address: str | None = None,
    ):
        super().__init__(*args)
        self.orig_exception = orig_exception
        self.rpc_uri = rpc_uri
        self.contract_address = contract_address


class QueryError(SyncError):
    """Custom query exception wrapper that contains additional information on the failed call.

    Raised once a block height or log range query has exhausted its retries.
    """

    def __init__(
        self,
        *args,
        # Explicitly passing these arguments as kwargs to allow for multiple `args` to be passed in
        # similar for other types of exceptions
        orig_exception: BaseException | None = None,
        query_name: str | None = None,
        from_block: int | None = None,
        to_block: int | None = None,
        fn_kwargs: dict[str, Any] | None = None,
    ):
        super().__init__(*args)
        self.orig_exception = orig_exception
        self.query_name = query_name
        self.from_block = from_block
        self.to_block = to_block
        self.fn_kwargs = fn_kwargs

    def __str__(self) -> str:
        message = super().__str__()
        if self.query_name is not None:
            message += f"\n{self.query_name=}"
        if self.from_block is not None or self.to_block is not None:
            message += f"\n{self.from_block=}, {self.to_block=}"
        if self.orig_exception is not None:
            message += f"\norig_exception={self.orig_exception!r}"
        return message
