"""Chain connection layer for semasync."""

from .eth_config import EthConfig, build_eth_config, validate_eth_address
