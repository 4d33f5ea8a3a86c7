"""Read only interface for a Semacaulk contract.

The interface is the chain side of the sync pipeline: it answers the current block height
and the InsertIdentity logs for a block range. Neither call retries; retries and rate
limiting belong to the synchronizers that drive it.
"""

from __future__ import annotations

import json
import logging

from eth_typing import BlockNumber, ChecksumAddress
from web3 import Web3
from web3.contract.contract import Contract
from web3.types import EventData

from ..abis import load_abi_from_file
from ..base.errors import ConfigError, ConnectivityError
from ..base.web3_setup import initialize_web3_with_http_provider
from ..eth_config import EthConfig, build_eth_config


class SemacaulkReadInterface:
    """Read only end-point API for interfacing with a deployed Semacaulk contract."""

    def __init__(self, eth_config: EthConfig | None = None, web3: Web3 | None = None) -> None:
        """Initialize the primary API interface for reading from the contract.

        Arguments
        ---------
        eth_config: EthConfig | None, optional
            Configuration for the rpc uri, contract address and abi path.
            If not provided, it is built from the environment (see `build_eth_config`).
        web3: Web3 | None, optional
            An already connected web3 instance. If not provided, one is made from the rpc uri.
        """
        if eth_config is None:
            eth_config = build_eth_config()
        if eth_config.contract_address is None:
            raise ConfigError("A Semacaulk contract address is required")
        self.eth_config = eth_config
        if web3 is None:
            web3 = initialize_web3_with_http_provider(eth_config.rpc_uri, request_timeout=eth_config.request_timeout)
        self.web3 = web3
        try:
            self.abi = load_abi_from_file(eth_config.abi_path)
        except (OSError, AssertionError, json.JSONDecodeError) as err:
            raise ConfigError(f"Could not load the Semacaulk abi from {eth_config.abi_path}") from err
        self.contract_address: ChecksumAddress = Web3.to_checksum_address(eth_config.contract_address)
        self.semacaulk_contract: Contract = self.web3.eth.contract(address=self.contract_address, abi=self.abi)

    def check_connection(self) -> int:
        """Sanity check the rpc and the contract.

        Returns
        -------
        int
            The current identity index of the contract.

        Raises
        ------
        ConnectivityError
            If the call fails or the contract reports a negative index.
        """
        try:
            current_index = self.get_current_index()
        except Exception as err:  # pylint: disable=broad-exception-caught
            raise ConnectivityError(
                f"Could not connect to the Semacaulk contract at {self.contract_address}",
                orig_exception=err,
                rpc_uri=self.eth_config.rpc_uri,
                contract_address=self.contract_address,
            ) from err
        if current_index < 0:
            raise ConnectivityError(
                f"Semacaulk contract at {self.contract_address} reported an invalid index {current_index}",
                rpc_uri=self.eth_config.rpc_uri,
                contract_address=self.contract_address,
            )
        logging.info("Connected to Semacaulk contract at %s, current index %s", self.contract_address, current_index)
        return current_index

    def get_current_index(self) -> int:
        """Returns the contract's current identity index."""
        return int(self.semacaulk_contract.functions.getCurrentIndex().call())

    def get_block_number(self) -> BlockNumber:
        """Returns the chain tip."""
        return self.web3.eth.get_block_number()

    def get_current_final_block(self, finality: int) -> int:
        """Returns the tip minus the finality lag.

        The result can be negative on a young chain; callers clamp it.

        Arguments
        ---------
        finality: int
            The number of blocks behind the tip that are considered final.

        Returns
        -------
        int
            The latest block number treated as final.
        """
        return int(self.get_block_number()) - finality

    def get_insert_identity_logs(self, from_block: int, to_block: int) -> list[EventData]:
        """Returns the InsertIdentity logs in the inclusive range [from_block, to_block]."""
        return self.get_event_logs("InsertIdentity", from_block, to_block)

    def get_event_logs(self, event_name: str, from_block: int, to_block: int) -> list[EventData]:
        """Returns the logs of a contract event in the inclusive range [from_block, to_block].

        Exactly one eth_getLogs request is made; windowing is up to the caller.

        Arguments
        ---------
        event_name: str
            The abi name of the event, e.g. "InsertIdentity".
        from_block: int
            The first block of the range.
        to_block: int
            The last block of the range.

        Returns
        -------
        list[EventData]
            The decoded logs, possibly empty.
        """
        if from_block > to_block:
            raise ValueError(f"{from_block=} must not be greater than {to_block=}")
        event = getattr(self.semacaulk_contract.events, event_name)()
        return list(event.get_logs(from_block=from_block, to_block=to_block))
