"""
Formatting utilities for certsync.

This module provides functions for rendering attribute values in log output,
and case conversion for flag names.
"""

from typing import Any


def to_pascal_case(snake_str: str) -> str:
    """
    Convert a snake_case string to PascalCase.

    Example:
        >>> to_pascal_case("hello_world")
        "HelloWorld"
    """
    components = snake_str.split("_")
    return "".join(x.title() for x in components)


def format_value(value: Any) -> str:
    """
    Render an attribute value for display.

    Bytes are shown as hex, lists as comma-separated values.
    """
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(item) for item in value)
    if value is None:
        return "<cleared>"
    return str(value)
