"""Transaction completion.

Wait for a transaction receipt and make sure the transaction succeeded
before its events are inspected.

Further reading

- `Web3.py Patterns: Revert Reason Lookups <https://snakecharmers.ethereum.org/web3py-revert-reason-parsing/>`_

"""

import datetime
import logging
from collections.abc import Mapping
from typing import Callable, Optional, Union

from eth_tester.exceptions import TransactionFailed
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.types import TxReceipt

from eth_expect.event_filter.errors import EventExpectationError

logger = logging.getLogger(__name__)


#: Transaction status code for success
#:
#: https://eips.ethereum.org/EIPS/eip-658
SUCCESS_STATUS = 1

#: How long we wait for a receipt by default
DEFAULT_RECEIPT_TIMEOUT = datetime.timedelta(minutes=2)

#: How often we ask for a receipt by default
DEFAULT_POLL_DELAY = datetime.timedelta(seconds=0.1)


#: Something that gives a receipt.
#:
#: - A receipt
#:
#: - A transaction hash
#:
#: - A callable returning either, e.g. `lambda: contract.functions.foo().transact({"from": deployer})`
ReceiptSource = Union[TxReceipt, HexBytes, str, bytes, Callable[[], Union[TxReceipt, HexBytes, str, bytes]]]


class TransactionNotSuccessful(EventExpectationError):
    """Transaction did not complete with the success status."""

    def __init__(
        self,
        message: str,
        receipt: Optional[TxReceipt] = None,
        revert_reason: str = "",
    ):
        super().__init__(message)
        self.receipt = receipt
        self.revert_reason = revert_reason


def receipt_of(
    web3: Optional[Web3],
    source: ReceiptSource,
    timeout: datetime.timedelta = DEFAULT_RECEIPT_TIMEOUT,
    poll_delay: datetime.timedelta = DEFAULT_POLL_DELAY,
) -> TxReceipt:
    """Resolve a receipt.

    :param web3:
        Needed only if `source` gives a transaction hash

    :param source:
        Receipt, transaction hash or a callable returning either

    :return:
        Receipt as is, or after the transaction is mined
    """
    if callable(source):
        source = source()

    if isinstance(source, Mapping):
        return source

    assert web3 is not None, f"Web3 connection needed to wait for the transaction {source!r}"

    tx_hash = HexBytes(source)
    logger.info("Waiting for the receipt of %s, timeout is %s", tx_hash.hex(), timeout)
    return web3.eth.wait_for_transaction_receipt(
        tx_hash,
        timeout=timeout.total_seconds(),
        poll_latency=poll_delay.total_seconds(),
    )


def fetch_transaction_revert_reason(
    web3: Web3,
    tx_hash: Union[HexBytes, str],
    unknown_error_message="<could not extract the revert reason>",
) -> str:
    """Gets a transaction revert reason.

    Ethereum nodes do not store the transaction failure reason.
    Replay the transaction against the current state with `eth_call`,
    so the reason might be wrong if the state has moved on.

    :return:
        The revert reason or the placeholder message
    """
    tx = web3.eth.get_transaction(tx_hash)

    # Ethereum Tester has this in tx.data while other nodes have it in tx.input
    data = tx["data"] if "data" in tx else tx["input"]

    replay_tx = {
        "to": tx["to"],
        "from": tx["from"],
        "value": tx["value"],
        "data": data,
        "gas": tx["gas"],
    }

    try:
        web3.eth.call(replay_tx)
    except ContractLogicError as e:
        return str(e.args[0])
    except TransactionFailed as e:
        # Ethereum Tester
        return str(e.args[0])
    except ValueError as e:
        logger.debug("Revert exception result is: %s", e)
        payload = e.args[0] if e.args else unknown_error_message
        if isinstance(payload, dict):
            return payload.get("message", unknown_error_message)
        return str(payload)

    logger.warning("Transaction %s succeeded when replayed to fetch its revert reason, the chain state has likely changed", HexBytes(tx_hash).hex())
    return unknown_error_message


def successful_transaction(
    web3: Optional[Web3],
    source: ReceiptSource,
    timeout: datetime.timedelta = DEFAULT_RECEIPT_TIMEOUT,
    poll_delay: datetime.timedelta = DEFAULT_POLL_DELAY,
    explain=True,
) -> TxReceipt:
    """Wait for a transaction and check it succeeded.

    Example:

    .. code-block:: python

        receipt = successful_transaction(web3, lambda: storage.functions.store(1).transact({"from": deployer}))

    :param web3:
        Needed to wait for a transaction hash and to fetch a revert reason

    :param source:
        Receipt, transaction hash or a callable returning either

    :param explain:
        Replay a failed transaction to get the revert reason

    :raise TransactionNotSuccessful:
        No receipt or the receipt status is not success

    :return:
        The receipt
    """
    receipt = receipt_of(web3, source, timeout, poll_delay)

    if receipt is None:
        raise TransactionNotSuccessful(f"No receipt for {source!r}")

    status = receipt.get("status")
    if status != SUCCESS_STATUS:
        tx_hash = receipt.get("transactionHash")
        revert_reason = ""
        if explain and web3 is not None and tx_hash is not None:
            revert_reason = fetch_transaction_revert_reason(web3, tx_hash)

        tx_name = HexBytes(tx_hash).hex() if tx_hash is not None else "<unknown>"
        raise TransactionNotSuccessful(
            f"Transaction {tx_name} failed with status {status}\nRevert reason: {revert_reason or '<not available>'}",
            receipt=receipt,
            revert_reason=revert_reason,
        )

    return receipt
