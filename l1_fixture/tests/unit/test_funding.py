"""
Unit tests for coinbase funding through the node console.
"""

from unittest.mock import Mock

import pytest

from l1_fixture.core.funding import fund_account, send_from_coinbase_script
from l1_fixture.core.node_container import NODE_IPC_PATH
from l1_fixture.utils.exceptions import ErrorCodes, FundingError

from ..conftest import TX_HASH

RECIPIENT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class TestFundAccount:

    def test_script(self):
        script = send_from_coinbase_script(RECIPIENT.lower(), 10**21)
        assert script == (
            "eth.sendTransaction({from: eth.coinbase, "
            f"to: '{RECIPIENT}', value: '1000000000000000000000'}})"
        )

    def test_success(self):
        node = Mock()
        node.exec.return_value = (0, f'"{TX_HASH}"\n')

        assert fund_account(node, RECIPIENT, 10**21) == TX_HASH

        cmd = node.exec.call_args.args[0]
        assert cmd[:3] == ["geth", "attach", "--exec"]
        assert RECIPIENT in cmd[3]
        assert cmd[4] == NODE_IPC_PATH

    def test_non_zero_exit(self):
        node = Mock()
        node.exec.return_value = (1, "Fatal: Unable to attach to remote geth: no such file")

        with pytest.raises(FundingError) as exc_info:
            fund_account(node, RECIPIENT, 10**21)

        assert exc_info.value.code == ErrorCodes.FUNDING_FAILED
        assert exc_info.value.details["recipient"] == RECIPIENT
        assert "no such file" in exc_info.value.details["output"]

    def test_missing_tx_hash(self):
        node = Mock()
        node.exec.return_value = (0, "Error: authentication needed: password or unlock\n")

        with pytest.raises(FundingError):
            fund_account(node, RECIPIENT, 10**21)
