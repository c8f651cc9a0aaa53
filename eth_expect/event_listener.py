"""Live event listener.

Accumulate events of a single type as they are emitted.

- Logs are pushed in with :py:meth:`EventListener.on_log`

- :py:meth:`EventListener.poll` fetches new logs with `eth_getLogs` and pushes them

Delivery order is not assumed: events are kept in the order they arrive,
and the same log delivered twice is stored once.
"""

import datetime
import logging
from typing import Callable, Generic, Optional, TypeVar

from eth_utils import encode_hex
from hexbytes import HexBytes
from web3 import Web3

from eth_expect.abi import EventSignature
from eth_expect.event_filter.errors import MissingEventField
from eth_expect.utils import PAUSE_TIME_INCREMENT, occurrence_at_most

logger = logging.getLogger(__name__)


T = TypeVar("T")

#: Converts an unvalidated log into a typed value, verifying its shape
EventConverter = Callable[[dict], T]


class EventListener(Generic[T]):
    """Listener for a single type of contract event.

    Created by :py:meth:`eth_expect.event_wrapper.EventFactory.new_listener`.
    """

    def __init__(
        self,
        web3: Web3,
        signature: EventSignature,
        address: str,
        convert: EventConverter,
        after_block: Optional[int] = None,
    ):
        """
        :param after_block:
            Listen to events in blocks after this one.

            Default to the current block, so only future events are seen.
        """
        self.web3 = web3
        self.signature = signature
        self.address = address
        self.convert = convert

        if after_block is None:
            after_block = web3.eth.block_number

        #: Next block :py:meth:`poll` reads
        self.next_block = after_block + 1

        self._events: list[T] = []
        self._seen: set[tuple[HexBytes, int | str]] = set()

    def __repr__(self) -> str:
        return f"<EventListener {self.signature.name}@{self.address}, {len(self._events)} events, next block {self.next_block}>"

    def events(self) -> list[T]:
        """Events received so far, in the arrival order."""
        return list(self._events)

    def on_log(self, log: dict):
        """Receive one raw log.

        :raise MissingEventField:
            The log is not a mined log, or does not decode to all arguments
        """
        for required in ("blockNumber", "transactionHash", "logIndex"):
            if log.get(required) is None:
                raise MissingEventField(f"The event {self.signature.name} log has no {required}, only mined logs are accepted: {log}", event_name=self.signature.name, field=required)

        key = (HexBytes(log["transactionHash"]), log["logIndex"])
        if key in self._seen:
            logger.debug("Skipping duplicate log %s", key)
            return

        self._events.append(self.convert(log))
        self._seen.add(key)

    def poll(self) -> int:
        """Fetch logs from blocks not read yet.

        :return:
            Number of logs received from the node
        """
        latest = self.web3.eth.block_number
        if latest < self.next_block:
            return 0

        logs = self.web3.eth.get_logs(
            {
                "address": self.address,
                "topics": [encode_hex(self.signature.topic)],
                "fromBlock": self.next_block,
                "toBlock": latest,
            }
        )

        logger.debug("Listener %s received %d logs from blocks %d - %d", self, len(logs), self.next_block, latest)

        for log in logs:
            self.on_log(log)

        self.next_block = latest + 1
        return len(logs)

    def wait_events(
        self,
        count: int,
        maximum_delay: datetime.timedelta,
        poll_delay: datetime.timedelta = PAUSE_TIME_INCREMENT,
    ) -> list[T]:
        """Poll until we have at least `count` events or the time runs out.

        :return:
            Events received so far, maybe less than `count`
        """

        def _enough() -> bool:
            self.poll()
            return len(self._events) >= count

        occurrence_at_most(_enough, maximum_delay, poll_delay)
        return self.events()
