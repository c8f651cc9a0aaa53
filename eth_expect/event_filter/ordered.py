"""Ordered multi-filter matching.

Match a sequence of filters against receipt logs so that

- every filter gets its own log, a log is never used twice

- logs matched by consecutive filters are in the emission order

- all filters must match, partial results are never returned

The search is greedy: each filter takes the first eligible log,
there is no backtracking over earlier filters.

:py:func:`match_ordered` is a pure function reporting mismatches as data.
:py:func:`expect_ordered_logs` turns mismatches into exceptions.

Example:

.. code-block:: python

    transfer = get_event_signature(token, "Transfer")
    approval = get_event_signature(token, "Approval")
    receipt = web3.eth.wait_for_transaction_receipt(tx_hash)

    # Approval by the user, then a transfer to the pool from any token
    approved, transferred = expect_events(
        receipt,
        new_event_filter(approval, token.address, {"owner": user}),
        new_event_filter(transfer, "*", {"to": pool}),
    )
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from web3.types import TxReceipt

from eth_expect.abi import DecodedEvent
from eth_expect.event_filter.errors import EventNotFound, EventOrderViolation, IncompleteEventMatch
from eth_expect.event_filter.filter import EventFilter
from eth_expect.event_filter.value import match_properties

logger = logging.getLogger(__name__)


class MismatchKind(enum.Enum):
    """Why a filter did not get a log."""

    #: No log satisfied the filter
    not_found = "not_found"

    #: A log satisfied the filter, but it was emitted before the previously matched log
    out_of_order = "out_of_order"


@dataclass(frozen=True, slots=True)
class FilterMismatch:
    """Diagnostics for a filter without a match."""

    #: Index of the filter in the match call
    filter_index: int

    kind: MismatchKind

    event_filter: EventFilter

    #: First log satisfying the filter at or before `previous_position`.
    #:
    #: Only for :py:attr:`MismatchKind.out_of_order`.
    position: Optional[int] = None

    #: Log matched by the last successful filter, -1 if none
    previous_position: int = -1


@dataclass(slots=True)
class MatchState:
    """Bookkeeping of one :py:func:`match_ordered` call."""

    #: Positions of logs taken by filters
    consumed: set[int] = field(default_factory=set)

    #: Position of the last taken log
    last_assigned: int = -1


@dataclass(slots=True)
class OrderedMatch:
    """Outcome of :py:func:`match_ordered`."""

    #: Emitter of each matched log
    addresses: list[str] = field(default_factory=list)

    #: Decoded arguments of each matched log
    results: list[DecodedEvent] = field(default_factory=list)

    #: Receipt position of each matched log
    positions: list[int] = field(default_factory=list)

    #: Filters that did not get a log
    mismatches: list[FilterMismatch] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.mismatches


def match_ordered(
    logs: Sequence[dict],
    filters: Iterable[EventFilter],
    forward_only: bool = False,
) -> OrderedMatch:
    """Match filters against logs in order.

    For each filter, scan the logs not yet taken by other filters:

    - With `forward_only` the scan starts after the log matched by the previous filter.
      Anything before is out of reach.

    - Otherwise the scan starts from the first log. A log satisfying the filter,
      but emitted before the previously matched log, is remembered as
      an ordering violation and the scan continues to find a later one.

    A filter without a match does not stop the matching, the following filters
    still get their chance, and the mismatch is reported in the outcome.

    :param logs:
        Receipt logs in the emission order

    :param forward_only:
        Skip all logs before the last match

    :return:
        Matches and mismatches
    """
    state = MatchState()
    outcome = OrderedMatch()

    for filter_index, event_filter in enumerate(filters):
        search_start = state.last_assigned + 1 if forward_only else 0
        early_candidate = None
        matched = False

        for position in range(search_start, len(logs)):
            if position in state.consumed:
                continue

            log = logs[position]
            if not event_filter.matches_topics(log):
                continue

            decoded = event_filter.decode(log)
            if event_filter.non_indexed is not None and not match_properties(event_filter.non_indexed, decoded):
                continue

            if position <= state.last_assigned:
                logger.debug("Filter #%d %s satisfied by log #%d, before the last match #%d", filter_index, event_filter, position, state.last_assigned)
                if early_candidate is None:
                    early_candidate = position
                continue

            state.consumed.add(position)
            state.last_assigned = position
            outcome.addresses.append(log["address"])
            outcome.results.append(decoded)
            outcome.positions.append(position)
            matched = True
            logger.debug("Filter #%d %s matched log #%d", filter_index, event_filter, position)
            break

        if not matched:
            outcome.mismatches.append(
                FilterMismatch(
                    filter_index=filter_index,
                    kind=MismatchKind.not_found if early_candidate is None else MismatchKind.out_of_order,
                    event_filter=event_filter,
                    position=early_candidate,
                    previous_position=state.last_assigned,
                )
            )

    return outcome


def _raise_mismatch(mismatch: FilterMismatch, log_count: int, forward_only: bool):
    event_filter = mismatch.event_filter
    if mismatch.kind == MismatchKind.out_of_order:
        raise EventOrderViolation(
            f"Wrong order of events: event #{mismatch.filter_index} {event_filter} matched log #{mismatch.position}, "
            f"which is not after log #{mismatch.previous_position} matched by the preceding events",
            event_name=event_filter.name,
            filter_index=mismatch.filter_index,
            position=mismatch.position,
            previous_position=mismatch.previous_position,
        )

    if forward_only and mismatch.previous_position >= 0:
        where = f"after log #{mismatch.previous_position} of {log_count} logs"
    else:
        where = f"in {log_count} logs"

    raise EventNotFound(
        f"Event #{mismatch.filter_index} {event_filter} not found {where}, topics {event_filter.topics}, values {event_filter.non_indexed}",
        event_name=event_filter.name,
        filter_index=mismatch.filter_index,
        previous_position=mismatch.previous_position,
    )


def expect_ordered_logs(
    logs: Sequence[dict],
    filters: Sequence[EventFilter],
    forward_only: bool = False,
) -> tuple[list[str], list[DecodedEvent]]:
    """Match filters against logs in order, or fail.

    See :py:func:`match_ordered`.

    :raise EventOrderViolation:
        A filter was satisfied only by logs emitted before the previous match

    :raise EventNotFound:
        A filter was not satisfied by any remaining log

    :raise IncompleteEventMatch:
        Fewer results than filters

    :return:
        Emitters and decoded arguments, one per filter
    """
    outcome = match_ordered(logs, filters, forward_only)

    if outcome.mismatches:
        _raise_mismatch(outcome.mismatches[0], len(logs), forward_only)

    if len(outcome.results) != len(filters):
        raise IncompleteEventMatch(f"Not all expected events were found, expected {len(filters)}, found {len(outcome.results)}")

    return outcome.addresses, outcome.results


def expect_events(receipt: TxReceipt, *filters: EventFilter) -> list[DecodedEvent]:
    """Decode receipt logs matched by filters, in the given order.

    A distinct set of events: earlier logs stay eligible, but each match must
    come after the previous one.

    NB! `indexed` arguments of dynamic types (`string`, `bytes`, arrays) can be used
    for filtering, but decoded values are :py:class:`eth_expect.abi.Indexed` hashes.

    :raise EventExpectationError:
        Ordering is wrong, or not all filters have a match
    """
    _, results = expect_ordered_logs(receipt["logs"], filters, forward_only=False)
    return results


def expect_emitters_and_events(
    receipt: TxReceipt,
    forward_only: bool,
    *filters: EventFilter,
) -> tuple[list[str], list[DecodedEvent]]:
    """Decode receipt logs matched by filters, with their emitters.

    Usable with filters where the emitter is not specified.

    - Use `forward_only=False` for a distinct set of events to make sure the ordering is correct

    - Use `forward_only=True` to extract a few events of the same type when some of events are exact and some are not

    :raise EventExpectationError:
        Ordering is wrong, or not all filters have a match

    :return:
        Emitters and decoded arguments, one per filter
    """
    return expect_ordered_logs(receipt["logs"], filters, forward_only=forward_only)
