"""Unordered receipt log decoding.

Collect every log of given event types in the emission order.
There are no ordering or value checks here, and finding nothing is not an error.
"""

import logging
from typing import Callable, Iterable, Optional

from hexbytes import HexBytes

from eth_expect.abi import DecodedEvent
from eth_expect.event_filter.filter import EventDataDecoder, EventFilter

logger = logging.getLogger(__name__)


#: Receipt log -> decoder, or None to skip the log
DecoderLookup = Callable[[dict], Optional[EventDataDecoder]]


def decode_event_logs(logs: Iterable[dict], decoder_lookup: DecoderLookup) -> list[DecodedEvent]:
    """Decode all logs a lookup gives a decoder for.

    :param logs:
        Receipt logs in the emission order

    :param decoder_lookup:
        Picks a decoder for a log by its emitter and topics.
    """
    found = []
    for log in logs:
        if not log["topics"]:
            # Anonymous events
            continue
        decode = decoder_lookup(log)
        if decode is not None:
            found.append(decode(log))
    return found


def filters_to_decoders(filters: Iterable[EventFilter]) -> DecoderLookup:
    """Build a lookup keyed by upper case emitter address and topic 0.

    Filters without an address accept logs from any emitter.
    Emitter specific filters win.
    """
    by_emitter: dict[Optional[str], dict[HexBytes, EventFilter]] = {}
    for event_filter in filters:
        address = event_filter.address.upper() if event_filter.address else None
        by_emitter.setdefault(address, {})[event_filter.topic] = event_filter

    def _lookup(log: dict) -> Optional[EventDataDecoder]:
        topic = HexBytes(log["topics"][0])
        event_filter = by_emitter.get(log["address"].upper(), {}).get(topic)
        if event_filter is None:
            event_filter = by_emitter.get(None, {}).get(topic)
        if event_filter is None:
            return None
        if event_filter.topic_count is not None and len(log["topics"]) != event_filter.topic_count:
            return None
        return event_filter.decode

    return _lookup


def filter_event_from_log(logs: Iterable[dict], event_filter: EventFilter) -> list[DecodedEvent]:
    """Decode all logs of one event type.

    Only the emitter and topic 0 are checked.
    Indexed and non-indexed values of the filter are ignored.

    :return:
        Decoded events in the emission order, possibly empty
    """
    found = decode_event_logs(logs, filters_to_decoders([event_filter]))
    logger.debug("Found %d logs for %s", len(found), event_filter)
    return found
