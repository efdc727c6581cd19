"""
Console logging for certsync.

Messages are printed to stdout with a level marker in front:
"[*]" info, "[+]" debug, "[!]" warning and "[-]" error. Modules import the
configured logger as `from certsync.lib.logger import logging`.
"""

import logging as _logging
import sys
from typing import Dict

LOGGER_NAME = "certsync"

# Set by -debug; makes handle_error() print tracebacks
_VERBOSE = False


def set_verbose(verbose: bool) -> None:
    global _VERBOSE
    _VERBOSE = verbose  # type: ignore


def is_verbose() -> bool:
    return _VERBOSE


MARKERS: Dict[int, str] = {
    _logging.DEBUG: "[+]",
    _logging.INFO: "[*]",
    _logging.WARNING: "[!]",
    _logging.ERROR: "[-]",
    _logging.CRITICAL: "[-]",
}


class Formatter(_logging.Formatter):
    """Prefix each record with the marker of its level."""

    def __init__(self) -> None:
        super().__init__("%(marker)s %(message)s")

    def format(self, record: _logging.LogRecord) -> str:
        record.marker = MARKERS.get(record.levelno, "[-]")
        return super().format(record)


def init(level: int = _logging.INFO, propagate: bool = False) -> None:
    """
    Attach a single stdout handler to the certsync logger.

    Calling init() again replaces the handler instead of adding a second one.
    """
    logger = _logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    stream = _logging.StreamHandler(sys.stdout)
    stream.setFormatter(Formatter())

    logger.addHandler(stream)
    logger.setLevel(level)
    logger.propagate = propagate


logging = _logging.getLogger(LOGGER_NAME)
