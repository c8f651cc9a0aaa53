"""Event expectations against transactions on Ethereum Tester."""

import datetime

import pytest
from web3 import Web3
from web3.contract import Contract

from eth_expect.abi import get_deployed_contract
from eth_expect.event_filter.errors import MissingEventField
from eth_expect.event_wrapper import wrap_event_type
from eth_expect.testing import deploy_log_emitter, emit_event, make_receipt
from eth_expect.transaction import TransactionNotSuccessful, successful_transaction
from eth_expect.utils import occurrence_at_most


@pytest.fixture()
def storage(web3: Web3, deployer: str, emitter: Contract, store) -> Contract:
    """Contract emitting Store(uint256) for any call."""
    address = deploy_log_emitter(web3, deployer, store)
    return get_deployed_contract(web3, emitter.abi, address)


def test_emit(web3, deployer, storage, store):
    """Receipt logs of a real transaction can be expected."""
    tx_hash = emit_event(web3, storage.address, deployer, store, 42)
    receipt = successful_transaction(web3, tx_hash)

    Store = wrap_event_type("Store", storage)
    assert Store.expect_one(receipt, {"value": 42}).value == 42


def test_wait_all(web3, deployer, storage, store):
    """Wait for a transaction and feed its events to a callback."""
    Store = wrap_event_type("Store", storage)
    stored = []

    receipt = Store.wait_all(lambda: emit_event(web3, storage.address, deployer, store, value=7), stored.extend)

    assert receipt["status"] == 1
    assert [e.value for e in stored] == [7]

    # The returned receipt is usable with other expectations
    assert Store.expect_one(receipt).value == 7


def test_wait_all_receipt(web3, deployer, storage, store):
    """Already mined receipts pass through."""
    Store = wrap_event_type("Store", storage)
    receipt = web3.eth.wait_for_transaction_receipt(emit_event(web3, storage.address, deployer, store, 1))
    assert Store.wait_all(receipt) == receipt


def test_failed_transaction():
    """Receipts with a failure status are rejected before looking at events."""
    receipt = make_receipt([], status=0)

    with pytest.raises(TransactionNotSuccessful) as exc_info:
        successful_transaction(None, receipt)

    assert exc_info.value.receipt == receipt
    assert "failed with status 0" in str(exc_info.value)


def test_listener_poll(web3, deployer, storage, store):
    """Listener picks up events emitted after it was created."""
    emit_event(web3, storage.address, deployer, store, 1)

    Store = wrap_event_type("Store", storage)
    listener = Store.new_listener()
    assert listener.poll() == 0

    emit_event(web3, storage.address, deployer, store, 2)
    tx_hash = emit_event(web3, storage.address, deployer, store, 3)

    events = listener.wait_events(2, datetime.timedelta(seconds=5))
    assert [e.value for e in events] == [2, 3]

    # Pushing an already received log does not duplicate it
    receipt = web3.eth.get_transaction_receipt(tx_hash)
    listener.on_log(receipt["logs"][0])
    assert len(listener.events()) == 2

    # Nothing new
    assert listener.poll() == 0


def test_listener_from_block(web3, deployer, storage, store):
    """Listen to past blocks."""
    start = web3.eth.block_number
    emit_event(web3, storage.address, deployer, store, 1)

    listener = wrap_event_type("Store", storage).new_listener(after_block=start)
    listener.poll()
    assert [e.value for e in listener.events()] == [1]


def test_listener_pending_log(storage):
    """Logs must come from mined blocks."""
    listener = wrap_event_type("Store", storage).new_listener()
    with pytest.raises(MissingEventField):
        listener.on_log({"address": storage.address, "topics": [], "data": b"", "blockNumber": None})


def test_occurrence_at_most():
    calls = []

    def _third_time():
        calls.append(1)
        return len(calls) >= 3

    assert occurrence_at_most(_third_time, datetime.timedelta(seconds=5), datetime.timedelta(milliseconds=1))
    assert len(calls) == 3

    assert not occurrence_at_most(lambda: False, datetime.timedelta(milliseconds=30), datetime.timedelta(milliseconds=10))


def test_listener_log_without_position(storage, store):
    """Logs must be identifiable by the transaction and the log index."""
    listener = wrap_event_type("Store", storage).new_listener()
    log = {"address": storage.address, "topics": [store.topic], "data": b"", "blockNumber": 1, "logIndex": 0}
    with pytest.raises(MissingEventField) as exc_info:
        listener.on_log(log)
    assert exc_info.value.field == "transactionHash"
