# Copyright DeltaVision Developers
#
# deltavision/compare/reader.py - DeltaVision file content reader
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Read file content as text, refusing oversized and binary files.
"""
from typing import Union
from pathlib import Path
import logging
import stat
import os

from deltavision import (
    MAX_FILE_SIZE,
    DV_SUBSYSTEM_READER,
    DeltaVisionArgumentError,
    DeltaVisionBinaryError,
    DeltaVisionNotFoundError,
    DeltaVisionPathError,
    DeltaVisionPermissionError,
    DeltaVisionTooLargeError,
)

from .filetypes import is_binary_path

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_reader(msg, *args, **kwargs):
    """A wrapper for reader subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_READER}, **kwargs)


def stat_path(file_path: Union[str, Path]) -> os.stat_result:
    """
    Stat ``file_path``, translating operating system errors into
    DeltaVision exceptions.

    :param file_path: The path to stat.
    :type file_path: ``Union[str, Path]``
    :returns: The stat result.
    :rtype: ``os.stat_result``
    :raises: ``DeltaVisionNotFoundError`` or ``DeltaVisionPermissionError``.
    """
    try:
        return os.stat(file_path)
    except FileNotFoundError as err:
        raise DeltaVisionNotFoundError(f"File not found: {file_path}") from err
    except PermissionError as err:
        raise DeltaVisionPermissionError(f"Permission denied: {file_path}") from err
    except OSError as err:
        raise DeltaVisionNotFoundError(
            f"Cannot access {file_path}: {err.strerror or err}"
        ) from err


def check_readable(file_path: Union[str, Path], max_size: int = MAX_FILE_SIZE) -> int:
    """
    Check that ``file_path`` is a regular file that may be read as text.

    Checks are applied in order: existence and access, file size, then
    extension.

    :param file_path: The path to check.
    :type file_path: ``Union[str, Path]``
    :param max_size: The size ceiling in bytes.
    :type max_size: ``int``
    :returns: The file size in bytes.
    :rtype: ``int``
    """
    st = stat_path(file_path)
    if not stat.S_ISREG(st.st_mode):
        raise DeltaVisionPathError(f"Not a regular file: {file_path}")
    if not os.access(file_path, os.R_OK):
        raise DeltaVisionPermissionError(f"Permission denied: {file_path}")

    if st.st_size > max_size:
        _log_debug_reader(
            "File too large to read entirely: %s (%d bytes)", file_path, st.st_size
        )
        raise DeltaVisionTooLargeError(str(file_path), st.st_size, max_size)

    if is_binary_path(file_path):
        _log_debug_reader("Binary file detected, not reading: %s", file_path)
        raise DeltaVisionBinaryError(str(file_path))

    return st.st_size


def read_content(file_path: Union[str, Path]) -> str:
    """
    Read the content of ``file_path`` as UTF-8 text.

    Undecodable bytes are replaced rather than rejected: only the file
    extension decides whether a file is binary.

    :param file_path: Path to the file to read.
    :type file_path: ``Union[str, Path]``
    :returns: The file content.
    :rtype: ``str``
    :raises: ``DeltaVisionArgumentError`` if no path is given,
             ``DeltaVisionNotFoundError``, ``DeltaVisionPermissionError``,
             ``DeltaVisionPathError``, ``DeltaVisionTooLargeError`` or
             ``DeltaVisionBinaryError``.
    """
    if not file_path:
        raise DeltaVisionArgumentError("File path is required")

    _log_debug_reader("Reading file content: %s", file_path)
    check_readable(file_path)

    try:
        # newline="" keeps "\r\n" intact so diffs reflect the bytes on disk.
        with open(file_path, "r", encoding="utf-8", errors="replace", newline="") as fp:
            content = fp.read()
    except PermissionError as err:
        raise DeltaVisionPermissionError(f"Permission denied: {file_path}") from err
    except OSError as err:
        raise DeltaVisionNotFoundError(
            f"Error reading {file_path}: {err.strerror or err}"
        ) from err

    _log_debug_reader("Successfully read file: %s (%d chars)", file_path, len(content))
    return content
