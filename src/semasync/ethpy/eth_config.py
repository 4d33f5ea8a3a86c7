"""Defines the eth chain connection configuration from env vars."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv
from eth_typing import URI

from .base.errors import ConfigError
from .base.web3_setup import DEFAULT_REQUEST_TIMEOUT
from .abis import DEFAULT_SEMACAULK_ABI_PATH

_ETH_ADDRESS_REGEX = re.compile(r"^0x[a-fA-F0-9]{40}$")


def validate_eth_address(address: str) -> bool:
    """Returns True if the address is 0x followed by 40 hex characters.

    Arguments
    ---------
    address: str
        The address to check. Checksum casing is not enforced.

    Returns
    -------
    bool
        Whether the address is well formed.
    """
    return _ETH_ADDRESS_REGEX.match(address) is not None


@dataclass
class EthConfig:
    """The configuration dataclass for the chain connection."""

    rpc_uri: URI | str = URI("http://127.0.0.1:8545")
    """The uri to the ethereum node."""
    contract_address: str | None = None
    """The address of the Semacaulk contract."""
    abi_path: str = DEFAULT_SEMACAULK_ABI_PATH
    """The path to the Semacaulk abi json."""
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    """Seconds before a single rpc request is abandoned."""

    def __post_init__(self):
        if isinstance(self.rpc_uri, str):
            self.rpc_uri = URI(self.rpc_uri)
        if isinstance(self.request_timeout, str):
            try:
                self.request_timeout = float(self.request_timeout)
            except ValueError as err:
                raise ConfigError(f"request_timeout must be a number, got {self.request_timeout!r}") from err
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.contract_address is not None and not validate_eth_address(self.contract_address):
            raise ConfigError(
                f"invalid contract address {self.contract_address!r}; should be a valid Ethereum contract address"
            )


def build_eth_config(dotenv_file: str = "eth.env") -> EthConfig:
    """Build an eth config that looks for environmental variables.
    If env var exists, use that, otherwise, default.

    Arguments
    ---------
    dotenv_file: str, optional
        The path location of the dotenv file to load from.
        Defaults to "eth.env".

    Returns
    -------
    EthConfig
        Config settings required to connect to the eth node
    """
    # Look for and load local config if it exists
    if os.path.exists(dotenv_file):
        load_dotenv(dotenv_file)

    rpc_uri = os.getenv("RPC_URI")
    contract_address = os.getenv("CONTRACT_ADDRESS")
    abi_path = os.getenv("ABI_PATH")
    request_timeout = os.getenv("REQUEST_TIMEOUT")

    arg_dict = {}
    if rpc_uri is not None:
        arg_dict["rpc_uri"] = rpc_uri
    if contract_address is not None:
        arg_dict["contract_address"] = contract_address
    if abi_path is not None:
        arg_dict["abi_path"] = abi_path
    if request_timeout is not None:
        arg_dict["request_timeout"] = request_timeout
    return EthConfig(**arg_dict)
