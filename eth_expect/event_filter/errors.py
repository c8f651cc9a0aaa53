"""Event expectation failures.

All failures are :py:class:`AssertionError` subclasses,
so they read as failed test assertions in pytest output.
"""

from typing import Optional


class EventExpectationError(AssertionError):
    """Base class for event matching failures.

    Carries the context needed to pinpoint the mismatch without
    rerunning the match by hand.
    """

    def __init__(
        self,
        message: str,
        event_name: Optional[str] = None,
        filter_index: Optional[int] = None,
        position: Optional[int] = None,
        previous_position: Optional[int] = None,
        field: Optional[str | int] = None,
    ):
        super().__init__(message)
        self.event_name = event_name
        self.filter_index = filter_index
        self.position = position
        self.previous_position = previous_position
        self.field = field


class FilterArgumentError(EventExpectationError, ValueError):
    """Filter could not be built from the given arguments."""


class FilterConsistencyError(FilterArgumentError):
    """Positional and named values disagree for the same argument."""


class FilterRangeError(FilterArgumentError):
    """More positional values than the event has arguments."""


class UnknownFieldError(FilterArgumentError):
    """A named value does not correspond to any event argument."""


class InvalidEmitterAddress(FilterArgumentError):
    """Emitter is neither an address nor `*`."""


class AmbiguousEventName(FilterArgumentError):
    """Event name is overloaded, a full signature is needed."""


class EventNotFound(EventExpectationError):
    """No log satisfied a filter."""


class EventOrderViolation(EventExpectationError):
    """A log satisfied a filter, but not after the log matched by the previous filter."""


class IncompleteEventMatch(EventExpectationError):
    """Fewer matched logs than filters."""


class EventCardinalityError(EventExpectationError):
    """Expected exactly one event."""


class EventFieldMismatch(EventExpectationError):
    """A decoded argument differs from the expected value."""


class MissingEventField(EventExpectationError):
    """A decoded event lacks an argument declared in the ABI."""
