"""Logging setup shared by the semasync entrypoints."""

from .logs import (
    DEFAULT_LOG_DATETIME,
    DEFAULT_LOG_FORMATTER,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_MAXBYTES,
    add_file_handler,
    add_stdout_handler,
    close_logging,
    get_root_logger,
    quiet_library_loggers,
    setup_logging,
)
