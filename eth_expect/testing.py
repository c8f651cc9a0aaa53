"""Test helpers.

- Build synthetic receipts with :py:func:`encode_event_log` and :py:func:`make_receipt`
  to test event expectations without a chain

- Emit real logs on a test chain with :py:func:`deploy_log_emitter` and :py:func:`emit_event`
"""

import logging
import secrets
from typing import Any, Optional, Sequence

import eth_abi
from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.datastructures import AttributeDict

from eth_expect.abi import EventSignature, encode_topic
from eth_expect.transaction import SUCCESS_STATUS

logger = logging.getLogger(__name__)


def _resolve_values(signature: EventSignature, args: Sequence[Any], kwargs: dict) -> list:
    names = signature.names
    assert len(args) <= len(names), f"{signature} takes {len(names)} arguments, got {len(args)}"
    values = list(args) + [None] * (len(names) - len(args))
    for name, value in kwargs.items():
        assert name in names, f"{signature} has no argument {name}"
        values[names.index(name)] = value
    return values


def encode_event_log(
    signature: EventSignature,
    *args,
    address: HexAddress | str,
    block_number: int = 1,
    **kwargs,
) -> AttributeDict:
    """Create a raw log like a contract would emit.

    Example:

    .. code-block:: python

        transfer = get_event_signature(token, "Transfer")
        log = encode_event_log(transfer, sender, receiver, value=100, address=token.address)

    :param args:
        Values by position

    :param kwargs:
        Values by name

    :return:
        Receipt log without `logIndex` and `transactionHash`,
        see :py:func:`make_receipt`
    """
    values = _resolve_values(signature, args, kwargs)
    topics = [signature.topic]
    data_types = []
    data_values = []
    for param, value in zip(signature.inputs, values):
        assert value is not None, f"{signature} argument {param.name} has no value"
        if param.indexed:
            topics.append(encode_topic(param, value))
        else:
            data_types.append(param.type)
            data_values.append(value)

    return AttributeDict(
        {
            "address": Web3.to_checksum_address(address),
            "topics": topics,
            "data": HexBytes(eth_abi.encode(data_types, data_values)),
            "blockNumber": block_number,
            "removed": False,
        }
    )


def make_receipt(
    logs: Sequence[dict],
    status: int = SUCCESS_STATUS,
    tx_hash: Optional[HexBytes] = None,
) -> AttributeDict:
    """Wrap logs to a transaction receipt.

    Logs get `logIndex` by their position and the receipt transaction hash.
    """
    if tx_hash is None:
        tx_hash = HexBytes(secrets.token_bytes(32))

    numbered = [AttributeDict(dict(log, logIndex=index, transactionHash=tx_hash)) for index, log in enumerate(logs)]

    return AttributeDict(
        {
            "transactionHash": tx_hash,
            "blockNumber": 1,
            "status": status,
            "gasUsed": 21_000,
            "logs": numbered,
        }
    )


def get_log_emitter_bytecode(topic: bytes) -> HexBytes:
    """Deployment bytecode of a contract emitting one event type.

    Any call to the contract emits `LOG1(topic)` with the call data as the log data.

    .. code-block:: text

        CALLDATASIZE PUSH1 0 PUSH1 0 CALLDATACOPY
        PUSH32 topic CALLDATASIZE PUSH1 0 LOG1 STOP
    """
    assert len(topic) == 32, f"Topic must be 32 bytes, got {len(topic)}"
    runtime = bytes.fromhex("366000600037") + b"\x7f" + bytes(topic) + bytes.fromhex("366000a100")
    assert len(runtime) == 0x2C

    # Copy the runtime to memory and return it
    constructor = bytes.fromhex("602c80600b6000396000f3")
    return HexBytes(constructor + runtime)


def deploy_log_emitter(web3: Web3, deployer: HexAddress | str, signature: EventSignature) -> HexAddress:
    """Deploy a contract that emits the given event.

    Only events without indexed arguments can be emitted,
    as the contract has a single topic.

    :param deployer:
        Unlocked test account

    :return:
        Contract address
    """
    assert not signature.indexed_inputs, f"Log emitter supports only events without indexed arguments: {signature}"
    tx_hash = web3.eth.send_transaction({"from": deployer, "data": get_log_emitter_bytecode(signature.topic)})
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash)
    assert receipt["status"] == SUCCESS_STATUS, f"Log emitter deployment failed: {receipt}"
    address = receipt["contractAddress"]
    logger.info("Deployed %s emitter at %s", signature, address)
    return address


def emit_event(
    web3: Web3,
    emitter: HexAddress | str,
    sender: HexAddress | str,
    signature: EventSignature,
    *args,
    **kwargs,
) -> HexBytes:
    """Make a contract from :py:func:`deploy_log_emitter` emit an event.

    :return:
        Transaction hash
    """
    values = _resolve_values(signature, args, kwargs)
    data = eth_abi.encode([p.type for p in signature.inputs], values)
    return web3.eth.send_transaction({"from": sender, "to": emitter, "data": HexBytes(data)})
