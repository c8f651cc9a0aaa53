"""Unordered decoding of receipt logs."""

from eth_expect.abi import get_event_signature
from eth_expect.event_filter.decoder import decode_event_logs, filter_event_from_log, filters_to_decoders
from eth_expect.event_filter.filter import new_event_filter
from eth_expect.testing import encode_event_log, make_receipt


def test_filter_event_from_log(emitter, other_emitter, store, transfer, alice, bob):
    """Only the emitter and the event type count."""
    receipt = make_receipt(
        [
            encode_event_log(store, 1, address=emitter.address),
            encode_event_log(transfer, alice, bob, 5, address=emitter.address),
            encode_event_log(store, 2, address=other_emitter.address),
            encode_event_log(store, 3, address=emitter.address),
        ]
    )

    # Values of the filter are ignored
    found = filter_event_from_log(receipt["logs"], new_event_filter(store, emitter.address, [100]))
    assert [e.value for e in found] == [1, 3]

    found = filter_event_from_log(receipt["logs"], new_event_filter(store, "*"))
    assert [e.value for e in found] == [1, 2, 3]


def test_nothing_found(emitter, store, transfer, alice, bob):
    receipt = make_receipt([encode_event_log(transfer, alice, bob, 5, address=emitter.address)])
    assert filter_event_from_log(receipt["logs"], new_event_filter(store, emitter.address)) == []


def test_several_event_types(emitter, other_emitter, store, transfer, alice, bob):
    """Emitter specific filters win over any emitter filters."""
    logs = make_receipt(
        [
            encode_event_log(store, 1, address=other_emitter.address),
            encode_event_log(transfer, alice, bob, 5, address=emitter.address),
            {"address": emitter.address, "topics": [], "data": b"", "blockNumber": 1},
            encode_event_log(store, 2, address=emitter.address),
        ]
    )["logs"]

    lookup = filters_to_decoders(
        [
            new_event_filter(store, emitter.address),
            new_event_filter(transfer, "*"),
        ]
    )
    found = decode_event_logs(logs, lookup)

    assert [e.event_name for e in found] == ["Transfer", "Store"]
    assert found[1].value == 2


def test_same_signature_other_layout(emitter, nft, transfer, alice, bob):
    """ERC-721 transfers are not decoded as ERC-20 transfers."""
    nft_transfer = get_event_signature(nft, "Transfer")
    logs = make_receipt(
        [
            encode_event_log(nft_transfer, alice, bob, 1, address=nft.address),
            encode_event_log(transfer, alice, bob, 5, address=emitter.address),
        ]
    )["logs"]

    found = filter_event_from_log(logs, new_event_filter(transfer, "*"))
    assert len(found) == 1
    assert found[0].value == 5
