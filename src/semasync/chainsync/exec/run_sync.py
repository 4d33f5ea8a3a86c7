"""Command line entrypoint: monitor a Semacaulk contract's InsertIdentity logs."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from typing import NamedTuple, Sequence

from semasync import __version__
from semasync.ethpy import EthConfig, build_eth_config, validate_eth_address
from semasync.ethpy.base.errors import ConfigError, ConnectivityError, QueryError
from semasync.ethpy.semacaulk import SemacaulkReadInterface
from semasync.synclogs import setup_logging

from ..sync_config import SyncConfig, build_sync_config, parse_number, validate_num
from ..types import BlockRange, LogEntry
from .sync_logs import sync_logs

# Process exit codes
EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_CONNECTIVITY_ERROR = 2
EXIT_QUERY_ERROR = 3


class Args(NamedTuple):
    """Command line arguments for the sync service."""

    eth_config: EthConfig
    sync_config: SyncConfig


def main(argv: Sequence[str] | None = None) -> int:
    """Primary entrypoint.

    Arguments
    ---------
    argv: Sequence[str] | None, optional
        The command line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        The process exit code.
    """
    namespace = build_parser().parse_args(argv)
    setup_logging(log_filename=namespace.log_file, log_level=logging.getLevelName(namespace.log_level))
    try:
        args = namespace_to_args(namespace)
    except ConfigError as err:
        logging.error("Error: %s", err)
        return EXIT_CONFIG_ERROR
    return run_sync(args)


def run_sync(args: Args) -> int:
    """Connect to the contract and sync until a stop signal arrives.

    Arguments
    ---------
    args: Args
        The validated configuration.

    Returns
    -------
    int
        The process exit code.
    """
    try:
        interface = SemacaulkReadInterface(args.eth_config)
        interface.check_connection()
    except ConfigError as err:
        logging.error("Error: %s", err)
        return EXIT_CONFIG_ERROR
    except ConnectivityError as err:
        # Never sync against a contract handle that failed its sanity check
        logging.error("%s: %s", err, repr(err.orig_exception))
        return EXIT_CONNECTIVITY_ERROR

    stop_event = threading.Event()

    def _request_stop(signum, _frame):
        logging.info("Received signal %s, stopping", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    try:
        sync_logs(
            interface,
            interface,
            args.sync_config,
            handler=log_batch,
            stop_event=stop_event,
            sleep=stop_event.wait,
        )
    except QueryError as err:
        logging.critical("Sync aborted: %s", err)
        return EXIT_QUERY_ERROR
    return EXIT_OK


def log_batch(logs: Sequence[LogEntry], block_range: BlockRange) -> None:
    """Default downstream handler: log each InsertIdentity event."""
    logging.info("Received %s logs for blocks %s", len(logs), block_range)
    for log in logs:
        logging.debug("Block %s: %s", log["blockNumber"], dict(log.get("args", {})))


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser.

    Options left unset fall back to the environment, see `build_eth_config` and `build_sync_config`.

    Returns
    -------
    argparse.ArgumentParser
        The parser.
    """
    parser = argparse.ArgumentParser(description="Monitor a Semacaulk contract for InsertIdentity logs.")
    parser.add_argument("-v", "--version", action="version", version=__version__)
    parser.add_argument("-r", "--rpc", type=str, default=None, help="The Ethereum RPC to connect to")
    parser.add_argument("-c", "--contract", type=str, default=None, help="The address of the Semacaulk contract")
    parser.add_argument(
        "--abi",
        type=str,
        default=None,
        help=(
            "Path to the Semacaulk abi json. The bundled abi is a minimal stand in declaring "
            "InsertIdentity(uint256 indexed,uint256 indexed) and getCurrentIndex(); "
            "pass the deployed contract's build artifact if its event differs"
        ),
    )
    parser.add_argument(
        "-f",
        "--finality",
        type=str,
        default=None,
        help="The number of blocks behind the chain tip to consider it final",
    )
    parser.add_argument(
        "-i", "--interval", type=str, default=None, help="The number of ms for each main loop iteration"
    )
    parser.add_argument(
        "-m",
        "--main-blocks-per-query",
        type=str,
        default=None,
        help="The number of blocks per query in the main loop",
    )
    parser.add_argument(
        "-n",
        "--initial-blocks-per-query",
        type=str,
        default=None,
        help="The number of blocks per query for the initial log download step",
    )
    parser.add_argument(
        "-q",
        "--initial-query-interval",
        type=str,
        default=None,
        help="The number of ms per loop iteration for the initial download step",
    )
    parser.add_argument("--retry-count", type=str, default=None, help="Attempts per rpc query")
    parser.add_argument("--env-file", type=str, default="eth.env", help="Dotenv file to read defaults from")
    parser.add_argument("--log-file", type=str, default=None, help="Also log to this file")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="The log level",
    )
    return parser


def namespace_to_args(namespace: argparse.Namespace) -> Args:
    """Converts argparse.Namespace to Args, validating every value.

    Arguments
    ---------
    namespace: argparse.Namespace
        Object for storing arg attributes.

    Returns
    -------
    Args
        Formatted arguments
    """
    env_eth_config = build_eth_config(namespace.env_file)
    env_sync_config = build_sync_config(namespace.env_file)

    contract = namespace.contract if namespace.contract is not None else env_eth_config.contract_address
    if contract is None or not validate_eth_address(contract):
        raise ConfigError("invalid value for -c/--contract; should be a valid Ethereum contract address")

    def _pick(value, default):
        return default if value is None else value

    def _flag_number(raw_value: str | None, default: int, name: str, minimum_inclusive: int) -> int:
        # Flags arrive as strings so a bad value is a ConfigError, not an argparse exit
        if raw_value is None:
            return default
        return validate_num(parse_number(name, raw_value), name, minimum_inclusive)

    sync_config = replace(
        env_sync_config,
        finality=_flag_number(namespace.finality, env_sync_config.finality, "-f/--finality", 0),
        incremental_interval_ms=_flag_number(
            namespace.interval, env_sync_config.incremental_interval_ms, "-i/--interval", 1
        ),
        incremental_blocks_per_query=_flag_number(
            namespace.main_blocks_per_query,
            env_sync_config.incremental_blocks_per_query,
            "-m/--main-blocks-per-query",
            1,
        ),
        backfill_blocks_per_query=_flag_number(
            namespace.initial_blocks_per_query,
            env_sync_config.backfill_blocks_per_query,
            "-n/--initial-blocks-per-query",
            1,
        ),
        backfill_interval_ms=_flag_number(
            namespace.initial_query_interval,
            env_sync_config.backfill_interval_ms,
            "-q/--initial-query-interval",
            1,
        ),
        retry_count=_flag_number(namespace.retry_count, env_sync_config.retry_count, "--retry-count", 1),
    )
    eth_config = EthConfig(
        rpc_uri=_pick(namespace.rpc, env_eth_config.rpc_uri),
        contract_address=contract,
        abi_path=_pick(namespace.abi, env_eth_config.abi_path),
        request_timeout=env_eth_config.request_timeout,
    )
    return Args(eth_config=eth_config, sync_config=sync_config)


if __name__ == "__main__":
    sys.exit(main())
