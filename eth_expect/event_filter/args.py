"""Filter arguments.

Event filter values can be given

- positionally: `[owner, None, 100]`

- by name: `{"owner": owner, "value": 100}`

- mixed: :py:class:`EventArgs` or a previously decoded :py:class:`eth_expect.abi.DecodedEvent`

The form is resolved once and then split to indexed values (topic filters)
and non-indexed values (checked after decoding).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from eth_expect.abi import DecodedEvent, EventSignature
from eth_expect.event_filter.errors import FilterConsistencyError, FilterRangeError, UnknownFieldError
from eth_expect.event_filter.value import scalars_equal


@dataclass(frozen=True, slots=True)
class EventArgs:
    """Filter values with positional entries and named overrides."""

    #: Values by argument position, `None` for don't care
    positional: tuple = ()

    #: Values by argument name
    named: Mapping[str, Any] = field(default_factory=dict)

    @staticmethod
    def of(args: Any) -> "EventArgs":
        """Resolve any accepted form of filter values."""
        if args is None:
            return EventArgs()
        if isinstance(args, EventArgs):
            return args
        if isinstance(args, DecodedEvent):
            return EventArgs(positional=tuple(args), named=args.as_dict())
        if isinstance(args, Mapping):
            return EventArgs(named=dict(args))
        if isinstance(args, (list, tuple)):
            return EventArgs(positional=tuple(args))
        raise TypeError(f"Unsupported event filter arguments: {type(args)} {args}")


@dataclass(slots=True)
class FilterArgs:
    """Filter values split by where they are checked."""

    #: One value per indexed argument, `None` for any
    indexed: list

    #: One value per argument with `None` at indexed positions.
    #:
    #: `None` when no non-indexed argument has a value, and decoded values need no check.
    non_indexed: Optional[list]


def build_filter_args(signature: EventSignature, args: Any = None) -> FilterArgs:
    """Split filter values of an event to indexed and non-indexed ones.

    Example:

    .. code-block:: python

        # Transfer(address indexed from, address indexed to, uint256 value)
        filter_args = build_filter_args(transfer, EventArgs((None, receiver), {"value": 100}))
        assert filter_args.indexed == [None, receiver]
        assert filter_args.non_indexed == [None, None, 100]

    :param args:
        Positional, named or mixed values

    :raise FilterRangeError:
        More positional values than arguments

    :raise FilterConsistencyError:
        Positional and named value given for the same argument and they differ

    :raise UnknownFieldError:
        Named value for a non-existing argument
    """
    event_args = EventArgs.of(args)
    positional = event_args.positional
    named = event_args.named
    inputs = signature.inputs

    if len(positional) > len(inputs):
        raise FilterRangeError(
            f"Event {signature} has {len(inputs)} arguments, got {len(positional)} positional values",
            event_name=signature.name,
            field=len(positional) - 1,
        )

    unconsumed = set(named.keys())
    indexed = []
    non_indexed = []
    has_non_indexed = False

    for index, param in enumerate(inputs):
        value = positional[index] if index < len(positional) else None

        if param.name and param.name in named:
            unconsumed.discard(param.name)
            named_value = named[param.name]
            if named_value is not None:
                if value is None:
                    value = named_value
                elif not scalars_equal(value, named_value):
                    raise FilterConsistencyError(
                        f"Event {signature.name} argument {param.name} #{index} has positional value {value!r} and named value {named_value!r}",
                        event_name=signature.name,
                        field=param.name,
                    )

        if param.indexed:
            indexed.append(value)
            non_indexed.append(None)
        else:
            non_indexed.append(value)
            if value is not None:
                has_non_indexed = True

    if unconsumed:
        unknown = sorted(unconsumed)
        raise UnknownFieldError(
            f"Event {signature} has no arguments named {', '.join(unknown)}",
            event_name=signature.name,
            field=unknown[0],
        )

    return FilterArgs(indexed=indexed, non_indexed=non_indexed if has_non_indexed else None)
