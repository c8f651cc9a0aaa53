"""Failed transaction explanations."""

import pytest
from eth_tester.exceptions import TransactionFailed
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError

from eth_expect.testing import make_receipt
from eth_expect.transaction import TransactionNotSuccessful, fetch_transaction_revert_reason, successful_transaction


class _ReplayEth:
    """Node answering the revert reason replay with a given error."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = []

    def get_transaction(self, tx_hash):
        return {
            "to": "0x" + "11" * 20,
            "from": "0x" + "aa" * 20,
            "value": 0,
            "data": "0x",
            "gas": 100_000,
        }

    def call(self, tx):
        self.calls.append(tx)
        raise self.error


class _ReplayWeb3:
    def __init__(self, error: Exception):
        self.eth = _ReplayEth(error)


def test_revert_reason_ethereum_tester():
    web3 = _ReplayWeb3(TransactionFailed("execution reverted: Not allowed"))
    assert fetch_transaction_revert_reason(web3, HexBytes("0x01")) == "execution reverted: Not allowed"
    assert web3.eth.calls[0]["gas"] == 100_000


def test_revert_reason_contract_logic():
    web3 = _ReplayWeb3(ContractLogicError("execution reverted: Too late"))
    assert fetch_transaction_revert_reason(web3, HexBytes("0x01")) == "execution reverted: Too late"


def test_failed_transaction_explained():
    """The revert reason is attached to the failure."""
    web3 = _ReplayWeb3(TransactionFailed("execution reverted: Not allowed"))
    receipt = make_receipt([], status=0)

    with pytest.raises(TransactionNotSuccessful) as exc_info:
        successful_transaction(web3, receipt)

    assert exc_info.value.revert_reason == "execution reverted: Not allowed"
    assert "Revert reason: execution reverted: Not allowed" in str(exc_info.value)

    # No replay when not asked for
    with pytest.raises(TransactionNotSuccessful) as exc_info:
        successful_transaction(web3, receipt, explain=False)
    assert exc_info.value.revert_reason == ""
    assert len(web3.eth.calls) == 1
