"""Event filter value objects.

A filter picks receipt logs of one event type, optionally from one emitter,
and knows how to decode them.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from hexbytes import HexBytes
from web3 import Web3

from eth_expect.abi import DecodedEvent, EventSignature, decode_event_log, encode_filter_topics
from eth_expect.event_filter.args import build_filter_args
from eth_expect.event_filter.errors import InvalidEmitterAddress

logger = logging.getLogger(__name__)


#: Turns a matched receipt log to decoded arguments
EventDataDecoder = Callable[[dict], DecodedEvent]

#: Emitter value for filters that accept any contract
ANY_EMITTER = "*"


@dataclass(slots=True)
class EventFilter:
    """Filter for one event type.

    - Topics are matched before decoding

    - Non-indexed values are matched after decoding,
      see :py:func:`eth_expect.event_filter.value.match_properties`
    """

    #: Event name for diagnostics
    name: str

    #: Topic 0 is the event signature, then one exact topic or `None` per indexed argument.
    #:
    #: Trailing wildcards are not stored.
    topics: list[Optional[HexBytes]]

    #: Decode capability bound to the event ABI
    decode: EventDataDecoder

    #: Emitter contract, `None` for any
    address: Optional[str] = None

    #: One value per argument, `None` at indexed and don't care positions.
    #:
    #: `None` if there is nothing to check after decoding.
    non_indexed: Optional[list] = None

    #: Exact number of topics of the event, `None` if unknown.
    #:
    #: Tells apart events sharing a signature but not indexed arguments,
    #: like ERC-20 and ERC-721 `Transfer`.
    topic_count: Optional[int] = None

    @property
    def topic(self) -> HexBytes:
        """Event signature topic."""
        return self.topics[0]

    def matches_topics(self, log: dict) -> bool:
        """Check emitter and topics of a receipt log.

        A log with fewer topics than the filter never matches.
        """
        if self.address is not None and log["address"].lower() != self.address.lower():
            return False

        log_topics = log["topics"]
        if len(self.topics) > len(log_topics):
            return False

        if self.topic_count is not None and len(log_topics) != self.topic_count:
            return False

        for expected, actual in zip(self.topics, log_topics):
            if expected is not None and HexBytes(actual) != expected:
                return False

        return True

    def __str__(self) -> str:
        return f"{self.name}@{self.address or ANY_EMITTER}"


def new_event_filter(
    signature: EventSignature,
    emitter: str,
    args: Any = None,
) -> EventFilter:
    """Create a filter for an event.

    Example:

    .. code-block:: python

        transfer = get_event_signature(token, "Transfer")
        to_user = new_event_filter(transfer, token.address, {"to": user})
        from_anyone = new_event_filter(transfer, "*", [None, user, 100])

    :param emitter:
        Contract address or `*` for any contract

    :param args:
        Positional, named or mixed values, see :py:func:`eth_expect.event_filter.args.build_filter_args`
    """
    address = None
    if emitter != ANY_EMITTER:
        if not isinstance(emitter, str) or not Web3.is_address(emitter):
            raise InvalidEmitterAddress(f"Invalid emitter address: {emitter!r}", event_name=signature.name)
        address = emitter

    filter_args = build_filter_args(signature, args)
    event_filter = EventFilter(
        name=signature.name,
        topics=encode_filter_topics(signature, filter_args.indexed),
        decode=partial(decode_event_log, signature),
        address=address,
        non_indexed=filter_args.non_indexed,
        topic_count=len(signature.indexed_inputs) + 1,
    )
    logger.debug("Created filter %s, topics %s, non-indexed %s", event_filter, event_filter.topics, event_filter.non_indexed)
    return event_filter
