"""
File handling utilities for certsync.

This module provides a helper for writing output files, falling back to stdout
when the file cannot be written.
"""

import os
import uuid
from typing import Union

from certsync.lib.errors import handle_error
from certsync.lib.logger import logging


def try_to_save_file(
    data: Union[bytes, str], output_path: str, abort_on_fail: bool = False
) -> str:
    """
    Write data to a file, or to stdout if writing fails.

    An existing file is never overwritten; a unique suffix is appended instead.

    Args:
        data: Data to write (either binary bytes or text string)
        output_path: Path to output file
        abort_on_fail: Raise instead of falling back to stdout

    Returns:
        The path written to, or "stdout"
    """
    logging.debug(f"Attempting to write data to {output_path!r}")

    if os.path.exists(output_path):
        base, ext = os.path.splitext(output_path)
        output_path = f"{base}_{uuid.uuid4()}{ext}"
        logging.debug(f"File exists, using alternative filename: {output_path!r}")

    try:
        mode = "wb" if isinstance(data, bytes) else "w"
        with open(output_path, mode) as f:
            f.write(data)
        logging.debug(f"Data written to {output_path!r}")
        return output_path
    except Exception as e:
        if abort_on_fail:
            logging.error(f"Error writing output file: {e}")
            raise
        logging.error(f"Error writing output file: {e}. Dumping to stdout instead")
        handle_error()
        if isinstance(data, bytes):
            print(data.decode("utf-8", errors="replace"))
        else:
            print(data)
        return "stdout"
