"""Logging setup and polling helpers."""

import datetime
import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

#: How long :py:func:`occurrence_at_most` sleeps between checks by default
PAUSE_TIME_INCREMENT = datetime.timedelta(milliseconds=100)


def occurrence_at_most(
    early_stop: Callable[[], bool],
    maximum_delay: datetime.timedelta,
    poll_delay: datetime.timedelta = PAUSE_TIME_INCREMENT,
) -> bool:
    """Delays processing, with an early exit condition.

    Example:

    .. code-block:: python

        listener = stored.new_listener()
        storage.functions.store(1).transact({"from": deployer})
        occurrence_at_most(lambda: listener.poll() and len(listener.events()) > 0, datetime.timedelta(seconds=5))

    :param early_stop:
        Awaiting the side effect.

        Called before each sleep.

    :param maximum_delay:
        Most amount of time to await the side effect

    :return:
        True if `early_stop` signalled before the time ran out
    """
    assert isinstance(maximum_delay, datetime.timedelta)
    assert isinstance(poll_delay, datetime.timedelta)

    passed = datetime.timedelta(0)
    while passed < maximum_delay:
        if early_stop():
            return True
        time.sleep(poll_delay.total_seconds())
        passed += poll_delay
    return bool(early_stop())


def setup_console_logging(
    default_log_level="warning",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up coloured log output.

    - Log level comes from `LOG_LEVEL` environment variable

    - Tune down some noisy dependency library logging

    :param log_file:
        Output both console and this log file.

    :return:
        Root logger
    """

    level = os.environ.get("LOG_LEVEL", default_log_level).upper()
    numeric_level = getattr(logging, level, None)
    assert isinstance(numeric_level, int), f"Bad LOG_LEVEL: {level}"

    fmt = "%(asctime)s %(name)-44s %(message)s"
    date_fmt = "%H:%M:%S"

    try:
        # Optional dev dependency
        import coloredlogs

        coloredlogs.install(level=numeric_level, fmt=fmt, datefmt=date_fmt)
    except ImportError:
        # non-ANSI e.g. Docker
        logging.basicConfig(level=numeric_level, format=fmt, datefmt=date_fmt)

    if log_file:
        assert isinstance(log_file, Path), "log_file must be a Path"
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(min(logging.INFO, numeric_level))
        file_handler.setFormatter(logging.Formatter(fmt, date_fmt))
        logging.getLogger().addHandler(file_handler)

    # Mute noise
    logging.getLogger("web3.providers.HTTPProvider").setLevel(logging.WARNING)
    logging.getLogger("web3.RequestManager").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    return logging.getLogger()
