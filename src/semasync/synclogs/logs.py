"""Utility functions for logging."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

# Logging defaults
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMATTER = "%(asctime)s: %(levelname)s: %(module)s::%(funcName)s: %(message)s"
DEFAULT_LOG_DATETIME = "%y-%m-%d %H:%M:%S"
DEFAULT_LOG_MAXBYTES = int(2e6)  # 2MB

# Libraries that log every request at INFO or DEBUG
_NOISY_LOGGERS = ("web3", "urllib3")


def setup_logging(
    log_filename: str | None = None,
    max_bytes: int | None = None,
    log_level: int | None = None,
    delete_previous_logs: bool = False,
    log_stdout: bool = True,
    log_format_string: str | None = None,
    keep_previous_handlers: bool = False,
) -> None:
    r"""Set up logging for a sync run.

    This should only be run once per process. Later customization should go through
    add_stdout_handler or add_file_handler.

    Arguments
    ---------
    log_filename: str, optional
        Path and name of the log file. If not set, no file handler is added.
    max_bytes: int, optional
        Maximum size of the log file in bytes. Defaults to DEFAULT_LOG_MAXBYTES.
    log_level: int, optional
        Log level to track. Defaults to DEFAULT_LOG_LEVEL.
    delete_previous_logs: bool, optional
        Whether to delete previous log file if it exists. Defaults to False.
    log_stdout: bool, optional
        Whether to log to standard output. Defaults to True.
    log_format_string: str, optional
        Log format string. Defaults to DEFAULT_LOG_FORMATTER.
    keep_previous_handlers: bool, optional
        Whether to keep previous handlers. Defaults to False.
    """
    # pylint: disable=too-many-arguments
    quiet_library_loggers()
    if not keep_previous_handlers:
        remove_handlers(get_root_logger())
    if log_stdout is True:
        add_stdout_handler(log_format_string=log_format_string, log_level=log_level)
    if log_filename is not None:
        add_file_handler(
            log_filename=log_filename,
            delete_previous_logs=delete_previous_logs,
            log_format_string=log_format_string,
            max_bytes=max_bytes,
            log_level=log_level,
        )
    # The root logger gates what reaches the handlers, so it takes the lowest handler level
    if get_root_logger().handlers:
        get_root_logger().setLevel(min(handler.level for handler in get_root_logger().handlers))
    else:
        get_root_logger().setLevel(create_log_level(log_level))


def quiet_library_loggers(log_level: int = logging.WARNING) -> None:
    """Raise the level of chatty third party loggers.

    Arguments
    ---------
    log_level: int, optional
        The level to set on the web3 and urllib3 loggers. Defaults to WARNING.
    """
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(log_level)


def close_logging(delete_logs: bool = True) -> None:
    """Close logging and remove handlers.

    Arguments
    ---------
    delete_logs: bool
        Whether to delete log files before closing logging.
    """
    logging.shutdown()
    root_logger = get_root_logger()
    if delete_logs:
        for handler in root_logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler_file_name = getattr(handler, "baseFilename", None)
                if handler_file_name is not None and os.path.exists(handler_file_name):
                    os.remove(handler_file_name)
            handler.close()
    remove_handlers(root_logger)


def prepare_log_path(log_filename: str) -> tuple[str, str]:
    """Split filename into path and name, adding a ".log" extension and creating the dir if needed.

    Arguments
    ---------
    log_filename: str
        Path and name of the log file.

    Returns
    -------
    tuple[str, str]
        The log directory and the log file name.
    """
    log_dir, log_name = os.path.split(log_filename)
    if not log_name.endswith(".log"):
        log_name += ".log"
    # Default directory is wherever the scripts get ran from.
    if log_dir == "":
        log_dir = os.path.join(os.getcwd(), ".logging")
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    return log_dir, log_name


def create_formatter(log_format_string: str | None = None) -> logging.Formatter:
    """Create a Formatter, falling back to DEFAULT_LOG_FORMATTER."""
    if log_format_string is None:
        log_format_string = DEFAULT_LOG_FORMATTER
    return logging.Formatter(log_format_string, DEFAULT_LOG_DATETIME)


def create_log_level(log_level: int | None = None) -> int:
    """Return log_level, or DEFAULT_LOG_LEVEL if it is None."""
    if log_level is None:
        log_level = DEFAULT_LOG_LEVEL
    return log_level


def get_root_logger(root_logger: logging.Logger | None = None) -> logging.Logger:
    """Retrieve the root logger unless another logger is given.

    Arguments
    ---------
    root_logger: logging.Logger, optional
        Logger to return. Defaults to logging.getLogger().

    Returns
    -------
    logging.Logger
        The logger.
    """
    if root_logger is None:
        root_logger = logging.getLogger()
    return root_logger


def add_stdout_handler(
    logger: logging.Logger | None = None,
    log_format_string: str | None = None,
    log_level: int | None = logging.INFO,
    keep_previous_handlers: bool = True,
) -> None:
    """Add a stdout handler to the root logger.

    Arguments
    ---------
    logger: logging.Logger, optional
        Logger to which to add the handler. Defaults to get_root_logger().
    log_format_string: str, optional
        Log format string. Defaults to DEFAULT_LOG_FORMATTER.
    log_level: int, optional
        Log level to track. Defaults to INFO.
    keep_previous_handlers: bool, optional
        Whether to keep previous handlers. Defaults to True.
    """
    logger = get_root_logger(logger)
    if not keep_previous_handlers:
        remove_handlers(logger)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(create_log_level(log_level))
    stream_handler.setFormatter(create_formatter(log_format_string))
    logger.addHandler(stream_handler)


def add_file_handler(
    log_filename: str,
    logger: logging.Logger | None = None,
    delete_previous_logs: bool = False,
    log_format_string: str | None = None,
    log_level: int | None = logging.INFO,
    max_bytes: int | None = None,
    keep_previous_handlers: bool = True,
) -> None:
    """Add a rotating file handler to the root logger.

    Arguments
    ---------
    log_filename: str
        Path and name of the log file.
    logger: logging.Logger, optional
        Logger to which to add the handler. Defaults to get_root_logger().
    delete_previous_logs: bool, optional
        Whether to delete previous log file if it exists. Defaults to False.
    log_format_string: str, optional
        Log format string. Defaults to DEFAULT_LOG_FORMATTER.
    log_level: int, optional
        Log level to track. Defaults to INFO.
    max_bytes: int, optional
        Maximum size of the log file in bytes. Defaults to DEFAULT_LOG_MAXBYTES.
    keep_previous_handlers: bool, optional
        Whether to keep previous handlers. Defaults to True.
    """
    # pylint: disable=too-many-arguments
    logger = get_root_logger(logger)
    if not keep_previous_handlers:
        remove_handlers(logger)
    log_dir, log_name = prepare_log_path(log_filename)
    log_path = os.path.join(log_dir, log_name)
    if delete_previous_logs and os.path.exists(log_path):
        os.remove(log_path)
    max_bytes = DEFAULT_LOG_MAXBYTES if max_bytes is None else max_bytes
    handler = RotatingFileHandler(log_path, mode="w", maxBytes=max_bytes)
    handler.setFormatter(create_formatter(log_format_string))
    handler.setLevel(create_log_level(log_level))
    logger.addHandler(handler)


def remove_handlers(logger: logging.Logger) -> None:
    """Remove all handlers from the logger."""
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])
