"""Deep value comparison with wildcards.

Used to compare user given expectations against decoded event arguments.
"""

from collections.abc import Mapping
from typing import Any, Sequence


def _is_sequence(v: Any) -> bool:
    # str and bytes are scalars here
    return isinstance(v, (list, tuple))


def scalars_equal(a: Any, b: Any) -> bool:
    """`==` without treating `True` as `1`."""
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def values_match(expected: Any, actual: Any) -> bool:
    """Check if a decoded value satisfies the expected value.

    - `None` in `expected` matches anything, on any nesting level

    - Lists and tuples are interchangeable and match element-wise,
      lengths must be equal

    - Mappings must have the same keys and matching values

    - A sequence never matches a mapping

    - Everything else is compared with `==`, but a `bool` only equals a `bool`

    Example:

    .. code-block:: python

        assert values_match([1, None], (1, "foo"))
        assert not values_match({"a": 1}, [1])

    :return:
        True if the values match
    """
    if expected is None:
        return True

    if _is_sequence(expected):
        if not _is_sequence(actual) or len(expected) != len(actual):
            return False
        return all(values_match(e, a) for e, a in zip(expected, actual))

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping) or set(expected.keys()) != set(actual.keys()):
            return False
        return all(values_match(v, actual[k]) for k, v in expected.items())

    if _is_sequence(actual) or isinstance(actual, Mapping):
        return False

    return scalars_equal(expected, actual)


def match_properties(expected: Sequence[Any], actual: Sequence[Any]) -> bool:
    """Match positional expectations against decoded arguments.

    :param expected:
        One entry per event argument, `None` for don't care
    """
    return all(index < len(actual) and values_match(value, actual[index]) for index, value in enumerate(expected) if value is not None)
