"""
RPC liveness probe

The node accepts connections some time after its container starts. The
probe polls eth_blockNumber at a fixed interval until it answers.
"""

import logging
import time
from typing import Callable, Optional

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from ..utils.exceptions import NodeStartupError

LOG = logging.getLogger(__name__)

PROBE_ERRORS = (requests.exceptions.RequestException, Web3Exception, ValueError, OSError)


def get_block_number(rpc_url: str, request_timeout: float = 2.0) -> int:
    """Single liveness query; raises if the endpoint does not answer"""
    web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout}))
    return web3.eth.block_number


def wait_for_rpc(
    rpc_url: str,
    timeout: Optional[float] = 120.0,
    interval: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic
) -> int:
    """
    Block until rpc_url answers a block-number query.

    Args:
        rpc_url: Node HTTP RPC endpoint
        timeout: Seconds to wait before giving up; None waits forever
        interval: Seconds between probes
        sleep: Sleep function, replaceable in tests
        clock: Monotonic clock, replaceable in tests

    Returns:
        The block number reported by the first successful probe

    Raises:
        NodeStartupError: The endpoint did not answer within timeout
    """
    LOG.info(f"Waiting for RPC at {rpc_url}...")
    deadline = None if timeout is None else clock() + timeout
    probes = 0

    while True:
        probes += 1
        try:
            block = get_block_number(rpc_url)
            LOG.info(f"RPC at {rpc_url} is live (block {block}, {probes} probes)")
            return block
        except PROBE_ERRORS as e:
            LOG.debug(f"RPC probe {probes} failed: {type(e).__name__}: {e}")

        if deadline is not None and clock() + interval > deadline:
            raise NodeStartupError(
                f"Node at {rpc_url} did not become live within {timeout}s",
                rpc_url=rpc_url,
                timeout=timeout
            )
        sleep(interval)
