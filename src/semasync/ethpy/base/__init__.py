"""Base utilities for working with contracts via web3"""

from .retry_utils import DEFAULT_RETRY_OPTIONS, RetryCallOptions, retry_call
from .web3_setup import initialize_web3_with_http_provider
