"""Event ABI handling.

Resolve Solidity event descriptions out of a contract ABI, encode indexed values
to log topics and decode receipt logs back to Python values.

- :py:func:`get_event_signature` turns an ABI entry to :py:class:`EventSignature`

- :py:func:`encode_filter_topics` builds exact match topics for indexed values

- :py:func:`decode_event_log` decodes one receipt log to :py:class:`DecodedEvent`

Indexed arguments of dynamic types (`string`, `bytes`, arrays, structs) are stored
in the log only as a keccak hash. They can be used for filtering, but decoding
gives back an :py:class:`Indexed` placeholder instead of the original value.

`See Solidity ABI specification on event encoding <https://docs.soliditylang.org/en/latest/abi-spec.html#events>`__.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence, Type, Union

import eth_abi
from eth_abi.grammar import TupleType, parse
from eth_typing import HexAddress
from eth_utils import keccak
from eth_utils.abi import collapse_if_tuple, event_abi_to_log_topic
from hexbytes import HexBytes
from web3 import Web3
from web3._utils.abi import map_abi_data
from web3._utils.normalizers import BASE_RETURN_NORMALIZERS
from web3.contract.contract import Contract

from eth_expect.event_filter.errors import AmbiguousEventName

#: Raw ABI as a list of JSON entries
ABI = list[dict]


def is_dynamic_type(abi_type: str) -> bool:
    """Can a value of this type be recovered from a log topic.

    Dynamic types are hashed when used as an indexed event argument.

    :param abi_type:
        Canonical type string, with tuples collapsed, e.g. `(uint256,address)[]`
    """
    return abi_type in ("string", "bytes") or abi_type.endswith("]") or abi_type.startswith("(")


@dataclass(frozen=True, slots=True)
class Indexed:
    """Decoded value of an indexed argument of a dynamic type.

    Only the hash is stored in the log, the original value is lost.
    """

    #: keccak hash as stored in the log topic
    hash: HexBytes

    def __repr__(self) -> str:
        return f"<Indexed {self.hash.hex()}>"


@dataclass(frozen=True, slots=True)
class EventParameter:
    """One argument of a Solidity event."""

    #: Argument name, empty string for unnamed arguments
    name: str

    #: Canonical ABI type, tuples collapsed
    type: str

    #: Stored as a topic
    indexed: bool

    #: Stored only as hash when indexed
    dynamic: bool


@dataclass(frozen=True)
class EventSignature:
    """Structural description of a Solidity event."""

    #: Event name, e.g. `Transfer`
    name: str

    #: Arguments in the declaration order
    inputs: tuple[EventParameter, ...]

    #: The source ABI entry
    abi: dict = field(compare=False, repr=False)

    @property
    def signature(self) -> str:
        """Canonical signature, e.g. `Transfer(address,address,uint256)`."""
        return f"{self.name}({','.join(p.type for p in self.inputs)})"

    @property
    def topic(self) -> HexBytes:
        """topic 0 of all logs of this event."""
        return HexBytes(event_abi_to_log_topic(self.abi))

    @property
    def indexed_inputs(self) -> list[EventParameter]:
        return [p for p in self.inputs if p.indexed]

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.inputs]

    def __str__(self) -> str:
        return self.signature


def create_event_signature(event_abi: dict) -> EventSignature:
    """Wrap a raw ABI entry of `"type": "event"`.

    :raise ValueError:
        For anonymous events, as they have no topic 0 to match against
    """
    assert event_abi.get("type") == "event", f"Not an event ABI entry: {event_abi}"

    if event_abi.get("anonymous"):
        raise ValueError(f"Anonymous events are not supported: {event_abi['name']}")

    inputs = []
    for abi_input in event_abi.get("inputs", []):
        abi_type = collapse_if_tuple(abi_input)
        inputs.append(
            EventParameter(
                name=abi_input.get("name", ""),
                type=abi_type,
                indexed=abi_input.get("indexed", False),
                dynamic=is_dynamic_type(abi_type),
            )
        )

    return EventSignature(name=event_abi["name"], inputs=tuple(inputs), abi=event_abi)


def _get_abi(abi_source: Union[Contract, Type[Contract], ABI]) -> ABI:
    if isinstance(abi_source, (list, tuple)):
        return list(abi_source)
    return abi_source.abi


def get_event_signature(
    abi_source: Union[Contract, Type[Contract], ABI],
    name: str,
) -> EventSignature:
    """Look up an event from a contract ABI.

    Example:

    .. code-block:: python

        transfer = get_event_signature(token, "Transfer")
        assert transfer.signature == "Transfer(address,address,uint256)"

        # Pick one of overloaded events
        deposit = get_event_signature(vault, "Deposit(address,uint256)")

    :param abi_source:
        Contract instance, contract class or raw ABI list

    :param name:
        Event name or a full signature for overloaded events

    :raise AmbiguousEventName:
        Several events share the bare name

    :raise ValueError:
        No such event
    """
    events = [create_event_signature(e) for e in _get_abi(abi_source) if e.get("type") == "event" and not e.get("anonymous")]

    if "(" in name:
        candidates = [e for e in events if e.signature == name.replace(" ", "")]
    else:
        candidates = [e for e in events if e.name == name]

    if len(candidates) == 0:
        raise ValueError(f"Event {name} not found in ABI, has events: {', '.join(e.signature for e in events)}")

    if len(candidates) > 1:
        raise AmbiguousEventName(
            f"Event name {name} matches several events: {', '.join(e.signature for e in candidates)}, use the full signature",
            event_name=name,
        )

    return candidates[0]


def _encode_in_place(abi_type, value: Any, pad: bool) -> bytes:
    """Encode a dynamic value the way Solidity hashes it for a topic.

    No length prefixes. Elements of arrays and structs are padded to 32 bytes.
    """
    if abi_type.is_array:
        return b"".join(_encode_in_place(abi_type.item_type, v, True) for v in value)

    if isinstance(abi_type, TupleType):
        assert len(value) == len(abi_type.components), f"Tuple {abi_type.to_type_str()} got {len(value)} values"
        return b"".join(_encode_in_place(c, v, True) for c, v in zip(abi_type.components, value))

    type_str = abi_type.to_type_str()
    if type_str == "string":
        raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    elif type_str == "bytes":
        raw = bytes(HexBytes(value))
    else:
        return eth_abi.encode([type_str], [value])

    if pad and len(raw) % 32:
        raw += b"\x00" * (32 - len(raw) % 32)
    return raw


def encode_topic(parameter: EventParameter, value: Any) -> Optional[HexBytes]:
    """Encode a value of an indexed argument as a log topic.

    :param value:
        Python value.

        `None` is a wildcard and passes through.
        :py:class:`Indexed` passes its hash through.

    :return:
        32 bytes topic or `None`
    """
    assert parameter.indexed, f"Not an indexed argument: {parameter}"

    if value is None:
        return None

    if isinstance(value, Indexed):
        return value.hash

    if parameter.dynamic:
        return HexBytes(keccak(_encode_in_place(parse(parameter.type), value, pad=False)))

    return HexBytes(eth_abi.encode([parameter.type], [value]))


def encode_filter_topics(signature: EventSignature, values: Sequence[Any]) -> list[Optional[HexBytes]]:
    """Build exact match topics for a log filter.

    Trailing wildcards are dropped, so the result has at least the event topic.

    :param values:
        One value per indexed argument, `None` for any
    """
    indexed = signature.indexed_inputs
    assert len(values) == len(indexed), f"{signature} has {len(indexed)} indexed arguments, got {len(values)} values"

    topics = [signature.topic] + [encode_topic(p, v) for p, v in zip(indexed, values)]
    while topics[-1] is None:
        topics.pop()
    return topics


class DecodedEvent(tuple):
    """Decoded event arguments.

    Both positional and named access:

    .. code-block:: python

        transfer = decode_event_log(signature, log)
        assert transfer[2] == transfer["value"] == transfer.value

    Attribute access does not work for argument names that shadow
    :py:class:`tuple` methods (`count`, `index`), use item access for those.
    """

    def __new__(cls, values: Iterable[Any], names: Sequence[str] = (), event_name: str = ""):
        self = super().__new__(cls, values)
        self._names = tuple(names)
        self._event_name = event_name
        return self

    def __reduce__(self):
        return (DecodedEvent, (tuple(self), self._names, self._event_name))

    def __getitem__(self, key):
        if isinstance(key, str):
            try:
                index = self._names.index(key) if key else -1
            except ValueError:
                raise KeyError(key) from None
            if index < 0 or index >= len(self):
                raise KeyError(key)
            return tuple.__getitem__(self, index)
        return tuple.__getitem__(self, key)

    def __getattr__(self, name: str):
        names = self.__dict__.get("_names", ())
        if name in names:
            return self[name]
        raise AttributeError(f"{self.__dict__.get('_event_name', 'Event')} has no argument {name}")

    @property
    def names(self) -> tuple[str, ...]:
        """Argument names by position, empty string for unnamed."""
        return self._names

    @property
    def event_name(self) -> str:
        return self._event_name

    def has_field(self, name: str) -> bool:
        return bool(name) and name in self._names[: len(self)]

    def get(self, name: str, default=None):
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> dict[str, Any]:
        """Named arguments only."""
        return {n: v for n, v in zip(self._names, self) if n}

    def __repr__(self) -> str:
        args = ", ".join(f"{n}={v!r}" if n else repr(v) for n, v in zip(self._names + ("",) * len(self), self))
        return f"{self._event_name}({args})"


def _as_tuples(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_as_tuples(v) for v in value)
    return value


def _decode_normalized(types: list[str], raw: bytes) -> list:
    """Decode like web3 contract events do, with checksummed addresses.

    Arrays and structs come out as tuples on any nesting level.
    """
    decoded = eth_abi.decode(types, raw)
    return [_as_tuples(v) for v in map_abi_data(BASE_RETURN_NORMALIZERS, types, decoded)]


def decode_event_log(signature: EventSignature, log: dict) -> DecodedEvent:
    """Decode one receipt log.

    The caller is responsible for checking that topic 0 matches the signature.
    Addresses are checksummed, as in web3 contract event data.

    :param log:
        Receipt log with `topics` and `data`.
        Hex strings and bytes are both accepted.

    :raise ValueError:
        The log does not have a topic for each indexed argument
    """
    topics = [HexBytes(t) for t in log["topics"]]
    indexed = signature.indexed_inputs
    if len(topics) != len(indexed) + 1:
        raise ValueError(f"Log has {len(topics)} topics, {signature} needs {len(indexed) + 1}")

    data_types = [p.type for p in signature.inputs if not p.indexed]
    data_values = iter(_decode_normalized(data_types, HexBytes(log["data"])))
    topic_values = iter(topics[1:])

    values = []
    for p in signature.inputs:
        if p.indexed:
            raw = next(topic_values)
            if p.dynamic:
                values.append(Indexed(raw))
            else:
                values.append(_decode_normalized([p.type], raw)[0])
        else:
            values.append(next(data_values))

    return DecodedEvent(values, names=signature.names, event_name=signature.name)


def get_contract(web3: Web3, abi: ABI, bytecode: Optional[str | bytes] = None) -> Type[Contract]:
    """Get Contract proxy class for an ABI.

    :param bytecode:
        Needed only for deployments
    """
    return web3.eth.contract(abi=abi, bytecode=bytecode)


def get_deployed_contract(web3: Web3, abi: ABI, address: Union[HexAddress, str]) -> Contract:
    """Get a Contract proxy object for a contract deployed at a specific address."""
    assert address, f"get_deployed_contract() address was None"
    return get_contract(web3, abi)(Web3.to_checksum_address(address))
