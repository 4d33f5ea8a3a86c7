"""Error types raised while connecting to and syncing from the chain."""

from .errors import ConfigError, ConnectivityError, QueryError, SyncError
