"""Functions and classes for setting up a web3py interface"""

from __future__ import annotations

from eth_typing import URI
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

DEFAULT_REQUEST_TIMEOUT = 20


def initialize_web3_with_http_provider(
    ethereum_node: URI | str, request_kwargs: dict | None = None, request_timeout: float | None = None
) -> Web3:
    """Initialize a Web3 instance using an HTTP provider and inject a Proof of Authority (poa) middleware.

    .. note::
        The POA middleware is required to connect to geth --dev or public POA networks.
        It may also be needed for other EVM compatible blockchains like Polygon or BNB Chain (Binance Smart Chain).
        See more `here <https://web3py.readthedocs.io/en/stable/middleware.html#proof-of-authority>`_.

    Arguments
    ---------
    ethereum_node: URI | str
        Address of the http provider
    request_kwargs: dict | None, optional
        The HTTPProvider uses the python requests library for making requests.
        If you would like to modify how requests are made,
        you can use the request_kwargs to do so.
    request_timeout: float | None, optional
        Seconds before a single rpc request is abandoned. Ignored if request_kwargs sets a timeout.
        Defaults to DEFAULT_REQUEST_TIMEOUT. This is the only bound on a stalled rpc call.

    Returns
    -------
    Web3
        The connected web3 instance
    """
    if request_kwargs is None:
        request_kwargs = {}
    if "timeout" not in request_kwargs:
        request_kwargs["timeout"] = DEFAULT_REQUEST_TIMEOUT if request_timeout is None else request_timeout
    # retry_call owns retries, so each attempt costs at most one request timeout
    provider = Web3.HTTPProvider(ethereum_node, request_kwargs, exception_retry_configuration=None)
    web3 = Web3(provider)
    web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3
