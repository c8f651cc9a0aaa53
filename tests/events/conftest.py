"""Event matching fixtures.

- Receipts are synthetic, built with :py:mod:`eth_expect.testing`

- Contract proxies are bound to made up addresses, nothing is deployed

- Tests touching the chain deploy a log emitter on Ethereum Tester
"""

import pytest
from eth_typing import HexAddress
from web3 import EthereumTesterProvider, Web3
from web3.contract import Contract

from eth_expect.abi import EventSignature, get_deployed_contract, get_event_signature

#: Events of a made up contract
EVENTS_ABI = [
    {
        "type": "event",
        "name": "Store",
        "anonymous": False,
        "inputs": [
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Labelled",
        "anonymous": False,
        "inputs": [
            {"name": "label", "type": "string", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
            {"name": "note", "type": "string", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Batch",
        "anonymous": False,
        "inputs": [
            {"name": "ids", "type": "uint256[]", "indexed": False},
            {
                "name": "info",
                "type": "tuple",
                "indexed": False,
                "components": [
                    {"name": "id", "type": "uint256"},
                    {"name": "owner", "type": "address"},
                ],
            },
        ],
    },
    {
        "type": "event",
        "name": "Tagged",
        "anonymous": False,
        "inputs": [
            {"name": "tag", "type": "bytes32", "indexed": True},
            {"name": "ids", "type": "uint256[]", "indexed": True},
            {"name": "flag", "type": "bool", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Deposit",
        "anonymous": False,
        "inputs": [
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Deposit",
        "anonymous": False,
        "inputs": [
            {"name": "owner", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Ping",
        "anonymous": True,
        "inputs": [],
    },
    {
        "type": "function",
        "name": "store",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "value", "type": "uint256"}],
        "outputs": [],
    },
]

#: ERC-721 style transfer sharing the signature with ERC-20 transfer
NFT_ABI = [
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "tokenId", "type": "uint256", "indexed": True},
        ],
    },
]


@pytest.fixture
def tester_provider():
    # https://web3py.readthedocs.io/en/stable/examples.html#contract-unit-tests-in-python
    return EthereumTesterProvider()


@pytest.fixture
def web3(tester_provider) -> Web3:
    """Set up a local unit testing blockchain."""
    return Web3(tester_provider)


@pytest.fixture()
def deployer(web3) -> str:
    """Unlocked test account with ETH."""
    return web3.eth.accounts[0]


@pytest.fixture()
def emitter(web3) -> Contract:
    return get_deployed_contract(web3, EVENTS_ABI, "0x" + "11" * 20)


@pytest.fixture()
def other_emitter(web3) -> Contract:
    return get_deployed_contract(web3, EVENTS_ABI, "0x" + "22" * 20)


@pytest.fixture()
def nft(web3) -> Contract:
    return get_deployed_contract(web3, NFT_ABI, "0x" + "33" * 20)


@pytest.fixture()
def alice() -> HexAddress:
    return Web3.to_checksum_address("0x" + "aa" * 20)


@pytest.fixture()
def bob() -> HexAddress:
    return Web3.to_checksum_address("0x" + "bb" * 20)


@pytest.fixture()
def store(emitter) -> EventSignature:
    return get_event_signature(emitter, "Store")


@pytest.fixture()
def transfer(emitter) -> EventSignature:
    return get_event_signature(emitter, "Transfer")


@pytest.fixture()
def labelled(emitter) -> EventSignature:
    return get_event_signature(emitter, "Labelled")


@pytest.fixture()
def tagged(emitter) -> EventSignature:
    return get_event_signature(emitter, "Tagged")


@pytest.fixture()
def batch(emitter) -> EventSignature:
    return get_event_signature(emitter, "Batch")
