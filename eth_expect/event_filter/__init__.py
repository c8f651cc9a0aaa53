"""Receipt log matching engine.

- :py:mod:`eth_expect.event_filter.value` deep value comparison with wildcards

- :py:mod:`eth_expect.event_filter.args` positional and named filter arguments

- :py:mod:`eth_expect.event_filter.filter` filter value objects

- :py:mod:`eth_expect.event_filter.decoder` unordered log decoding

- :py:mod:`eth_expect.event_filter.ordered` ordered multi-filter matching
"""
