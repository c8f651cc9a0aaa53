"""Typed event expectations for one contract event.

:py:class:`EventFactory` binds an event name to an emitter contract and
offers the operations test code needs to check what a transaction emitted.

Example:

.. code-block:: python

    Transfer = wrap_event_type("Transfer", token)

    receipt = successful_transaction(web3, token.functions.transfer(user, 100).transact({"from": deployer}))

    # Exactly one transfer with the given values
    transfer = Transfer.expect_one(receipt, {"to": user, "value": 100})
    assert transfer["from"] == deployer

    # Transfers in this order, other logs in between are fine
    Transfer.expect_ordered(receipt, [{"to": pool}, {"to": user}])

    # Everything emitted, fed to a callback
    total = Transfer.all(receipt, lambda transfers: sum(t.value for t in transfers))

"""

import datetime
import logging
from typing import Any, Callable, Optional, Sequence, TypeVar

from web3.contract.contract import Contract
from web3.types import TxReceipt

from eth_expect.abi import DecodedEvent, EventSignature, decode_event_log, get_event_signature
from eth_expect.event_filter.args import EventArgs
from eth_expect.event_filter.decoder import filter_event_from_log
from eth_expect.event_filter.errors import EventCardinalityError, EventFieldMismatch, EventNotFound, MissingEventField
from eth_expect.event_filter.filter import EventFilter, new_event_filter
from eth_expect.event_filter.ordered import expect_emitters_and_events
from eth_expect.event_filter.value import values_match
from eth_expect.event_listener import EventListener
from eth_expect.transaction import DEFAULT_RECEIPT_TIMEOUT, ReceiptSource, successful_transaction

logger = logging.getLogger(__name__)


R = TypeVar("R")


def _verify_by_fragment(signature: EventSignature, name: str, args: DecodedEvent):
    """Every declared argument must be present, by position and by name."""
    for index, param in enumerate(signature.inputs):
        if index >= len(args) or args[index] is None:
            raise MissingEventField(f"Property {name}[{index}] is undefined", event_name=name, field=index)

        if param.name and args.get(param.name) is None:
            raise MissingEventField(f"Property {name}.{param.name} is undefined", event_name=name, field=param.name)


def _verify_by_properties(expected: Any, name: str, args: DecodedEvent):
    """Every given expected value must match, `None` is don't care."""
    event_args = EventArgs.of(expected)

    for index, value in enumerate(event_args.positional):
        if value is None:
            continue
        actual = args[index] if index < len(args) else None
        if not values_match(value, actual):
            raise EventFieldMismatch(
                f"Mismatched value of property {name}[{index}], expected {value!r}, got {actual!r}",
                event_name=name,
                field=index,
            )

    for prop_name, value in event_args.named.items():
        if value is None:
            continue
        actual = args.get(prop_name)
        if not values_match(value, actual):
            raise EventFieldMismatch(
                f"Mismatched value of property {name}.{prop_name}, expected {value!r}, got {actual!r}",
                event_name=name,
                field=prop_name,
            )


class EventFactory:
    """Expectations for one event of one emitter contract.

    Use :py:func:`wrap_event_type` to create.
    """

    def __init__(self, name: str, emitter: Contract):
        """
        :param name:
            Event name, or a full signature for overloaded events

        :param emitter:
            Deployed contract proxy
        """
        assert emitter.address, f"Contract {emitter} is not bound to an address"
        self.emitter = emitter
        self.signature = get_event_signature(emitter, name)
        self._name = name

    def __str__(self) -> str:
        return self.name()

    def __repr__(self) -> str:
        return f"<EventFactory {self.signature} at {self.emitter.address}>"

    def name(self) -> str:
        return self._name

    def _find_event_args(self, receipt: TxReceipt) -> list[DecodedEvent]:
        return filter_event_from_log(receipt["logs"], self.new_filter())

    def verify_args(self, args: DecodedEvent, expected: Any = None) -> DecodedEvent:
        """Check decoded arguments.

        :param expected:
            Positional, named or mixed values that must match, `None` entries are skipped

        :raise EventFieldMismatch:
            Expected value differs

        :raise MissingEventField:
            A declared argument is missing
        """
        name = self.name()
        if expected is not None:
            _verify_by_properties(expected, name, args)
        _verify_by_fragment(self.signature, name, args)
        return args

    def expect_one(self, receipt: TxReceipt, expected: Any = None) -> DecodedEvent:
        """Decode the only event of this type in a receipt.

        :param expected:
            Values the event must have

        :raise EventCardinalityError:
            Zero or many events

        :return:
            Decoded arguments
        """
        found = self._find_event_args(receipt)
        if len(found) != 1:
            raise EventCardinalityError(
                f"Expecting a single event {self}: expected 1, found {len(found)}",
                event_name=self.name(),
            )
        return self.verify_args(found[0], expected)

    def expect_ordered(
        self,
        receipt: TxReceipt,
        expecteds: Sequence[Any],
        forward_only: bool = False,
    ) -> list[DecodedEvent]:
        """Parses logs of the receipt by the given expectations.

        One filter per expectation is matched against logs, in order.

        When `forward_only` is false only a matched log entry is removed from further matching;
        otherwise, all log entries before the matched entry are also excluded.

        - Use `forward_only=False` for a distinct set of events to make sure that ordering is correct.

        - Use `forward_only=True` to extract a few events of the same type when some of events are exact and some are not.

        NB! `indexed` arguments of dynamic types (`string`, `bytes`, arrays) can be used
        for filtering, but decoded values are :py:class:`eth_expect.abi.Indexed` hashes.

        :param expecteds:
            Positional, named or mixed values for each event

        :raise EventExpectationError:
            An event is missing, or a event matches a log before the log matched by its predecessor

        :return:
            Decoded arguments, one per expectation
        """
        filters = [self.new_filter(expected) for expected in expecteds]
        _, events = expect_emitters_and_events(receipt, forward_only, *filters)
        return events

    def all(self, receipt: TxReceipt, fn: Optional[Callable[[list[DecodedEvent]], R]] = None) -> list[DecodedEvent] | R:
        """Decode all events of this type.

        :param fn:
            Transform the decoded events

        :raise EventNotFound:
            No events

        :return:
            Decoded events, or what `fn` returned
        """
        found = self._find_event_args(receipt)
        if not found:
            raise EventNotFound(f"Failed to find any event matching name: {self}", event_name=self.name())

        for args in found:
            self.verify_args(args)

        if fn is None:
            return found
        return fn(found)

    def wait_all(
        self,
        source: ReceiptSource,
        fn: Optional[Callable[[list[DecodedEvent]], Any]] = None,
        timeout: datetime.timedelta = DEFAULT_RECEIPT_TIMEOUT,
    ) -> TxReceipt:
        """Wait for a successful transaction and process its events.

        Returns the receipt, so other event types can be checked on the same transaction.

        :param source:
            Receipt, transaction hash or a callable returning either

        :raise TransactionNotSuccessful:
            Transaction failed
        """
        receipt = successful_transaction(self.emitter.w3, source, timeout=timeout)
        self.all(receipt, fn)
        return receipt

    def new_listener(self, after_block: Optional[int] = None) -> EventListener[DecodedEvent]:
        """Listen to events emitted after the given block.

        Received events are verified the same way as :py:meth:`all` does.
        """
        name = self.name()
        signature = self.signature

        def _convert(log: dict) -> DecodedEvent:
            args = decode_event_log(signature, log)
            _verify_by_fragment(signature, name, args)
            return args

        return EventListener(self.emitter.w3, signature, self.emitter.address, _convert, after_block)

    def new_filter(self, args: Any = None, emitter_address: Optional[str] = None) -> EventFilter:
        """Create a filter for combining with other events in :py:func:`eth_expect.event_filter.ordered.expect_events`.

        :param args:
            Positional, named or mixed values

        :param emitter_address:
            Override the emitter, `*` for any
        """
        return new_event_filter(self.signature, emitter_address or self.emitter.address, args)


def wrap_event_type(name: str, emitter: Contract) -> EventFactory:
    """Create expectations for an event of a contract.

    :param name:
        Event name, or a full signature for overloaded events
    """
    return EventFactory(name, emitter)
