"""
Coinbase funding

In dev mode the node's coinbase account is unlocked and holds the whole
premine. Recipients are funded by running a one-shot script through the
node's console (`geth attach --exec`) inside the container.
"""

import logging
import re

from web3 import Web3

from .node_container import NODE_IPC_PATH, NodeContainer
from ..utils.exceptions import FundingError

LOG = logging.getLogger(__name__)

TX_HASH_PATTERN = re.compile(r"0x[0-9a-fA-F]{64}")


def send_from_coinbase_script(recipient: str, amount_wei: int) -> str:
    """Console script sending amount_wei from the coinbase account to recipient"""
    recipient = Web3.to_checksum_address(recipient)
    return (
        f"eth.sendTransaction({{from: eth.coinbase, to: '{recipient}', "
        f"value: '{amount_wei}'}})"
    )


def fund_account(node: NodeContainer, recipient: str, amount_wei: int) -> str:
    """
    Send amount_wei from the coinbase to recipient.

    Returns:
        Transaction hash printed by the console

    Raises:
        FundingError: The console exited non-zero or printed no transaction hash
    """
    LOG.info(f"Funding {recipient} with {Web3.from_wei(amount_wei, 'ether')} ETH")
    script = send_from_coinbase_script(recipient, amount_wei)
    exit_code, output = node.exec(["geth", "attach", "--exec", script, NODE_IPC_PATH])
    output = output.strip()

    if exit_code != 0:
        raise FundingError(
            f"Funding {recipient} failed with exit code {exit_code}",
            recipient=recipient,
            output=output
        )
    match = TX_HASH_PATTERN.search(output)
    if not match:
        raise FundingError(
            f"Funding {recipient} returned no transaction hash",
            recipient=recipient,
            output=output
        )

    tx_hash = match.group(0)
    LOG.info(f"Funded {recipient}: {tx_hash}")
    return tx_hash
