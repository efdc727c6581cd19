"""
Error kinds and error reporting helpers for certsync.

The reconciliation and serialization core raises the exceptions defined here;
the command layer logs them and calls handle_error().

Exceptions:
    CertsyncError: Base class for every error raised by certsync
    FormatError: Unparseable duration string or malformed OID value
    RangeError: Numeric component outside the 32-bit integer range
    MissingInputError: Required input was not supplied
    TypeCoercionError: A value cannot be coerced to its attribute's type
    NotFoundError: A certificate template does not exist in the directory
"""

import traceback
from typing import Any

from certsync.lib.logger import is_verbose, logging


class CertsyncError(Exception):
    """Base class for all certsync errors."""


class FormatError(CertsyncError, ValueError):
    """Raised when a duration string or OID value is malformed."""


class RangeError(CertsyncError, OverflowError):
    """Raised when a numeric value does not fit a signed 32-bit integer."""


class MissingInputError(CertsyncError):
    """Raised when an operation receives no input to work on."""


class TypeCoercionError(CertsyncError, TypeError):
    """
    Raised when a value cannot be coerced to the type its attribute class expects.

    Attributes:
        attribute: Name of the attribute being compared
        value: The offending value
        expected: Human-readable name of the expected type
    """

    def __init__(self, attribute: str, value: Any, expected: str) -> None:
        self.attribute = attribute
        self.value = value
        self.expected = expected
        super().__init__(
            f"Cannot coerce {value!r} to {expected} for attribute {attribute!r}"
        )


class NotFoundError(CertsyncError, LookupError):
    """Raised when a certificate template cannot be found in the directory."""


def handle_error(is_warning: bool = False) -> None:
    """
    Print a stack trace in verbose mode, otherwise a hint on how to get one.

    Args:
        is_warning: Log the hint as a warning instead of an error
    """
    if is_verbose():
        traceback.print_exc()
    else:
        msg = "Use -debug to print a stacktrace"
        if is_warning:
            logging.warning(msg)
        else:
            logging.error(msg)
