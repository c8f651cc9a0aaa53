"""Expected value comparison."""

from eth_expect.event_filter.value import match_properties, values_match


def test_scalars():
    assert values_match(1, 1)
    assert not values_match(1, 2)
    assert values_match("foo", "foo")
    assert values_match(b"\x01", b"\x01")
    assert not values_match("foo", ["f", "o", "o"])


def test_wildcard():
    """None matches anything on any level."""
    assert values_match(None, 1)
    assert values_match(None, [1, 2])
    assert values_match([1, None], (1, "whatever"))
    assert values_match({"a": None}, {"a": [1]})


def test_sequences():
    """Lists and tuples are interchangeable, lengths must agree."""
    assert values_match([1, 2], (1, 2))
    assert values_match((1, (2, 3)), [1, [2, 3]])
    assert not values_match([1, 2], (1, 2, 3))
    assert not values_match([1, 2], 1)
    assert not values_match(1, [1])


def test_mappings():
    assert values_match({"a": 1, "b": [2]}, {"b": (2,), "a": 1})
    assert not values_match({"a": 1}, {"a": 1, "b": 2})
    assert not values_match({"a": 1}, {"a": 2})

    # Never across kinds
    assert not values_match({"a": 1}, [1])
    assert not values_match([1], {"a": 1})


def test_match_properties():
    """Positional expectations skip don't care entries."""
    assert match_properties([None, None, 100], ("0x1", "0x2", 100))
    assert not match_properties([None, None, 99], ("0x1", "0x2", 100))
    assert match_properties([], (1,))

    # Expected value past the decoded arguments
    assert not match_properties([None, 1], (1,))


def test_bool_is_not_int():
    """Booleans never equal numbers."""
    assert not values_match(1, True)
    assert not values_match(True, 1)
    assert not values_match(0, False)
    assert values_match(True, True)
    assert values_match([1, False], (1, False))
    assert not values_match([1, 0], (1, False))
