# Copyright DeltaVision Developers
#
# deltavision/_deltavision.py - DeltaVision global definitions
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level deltavision package.
"""
import logging
import math

_log = logging.getLogger("deltavision")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# DeltaVision debugging subsystem mask (legacy interface)
DV_DEBUG_READER = 1
DV_DEBUG_PAIRING = 2
DV_DEBUG_DIFF = 4
DV_DEBUG_SEARCH = 8
DV_DEBUG_COMMAND = 16
DV_DEBUG_ALL = (
    DV_DEBUG_READER | DV_DEBUG_PAIRING | DV_DEBUG_DIFF | DV_DEBUG_SEARCH | DV_DEBUG_COMMAND
)

# DeltaVision debugging subsystem names
DV_SUBSYSTEM_READER = "deltavision.reader"
DV_SUBSYSTEM_PAIRING = "deltavision.pairing"
DV_SUBSYSTEM_DIFF = "deltavision.diff"
DV_SUBSYSTEM_SEARCH = "deltavision.search"
DV_SUBSYSTEM_COMMAND = "deltavision.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    DV_DEBUG_READER: DV_SUBSYSTEM_READER,
    DV_DEBUG_PAIRING: DV_SUBSYSTEM_PAIRING,
    DV_DEBUG_DIFF: DV_SUBSYSTEM_DIFF,
    DV_DEBUG_SEARCH: DV_SUBSYSTEM_SEARCH,
    DV_DEBUG_COMMAND: DV_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()

#: Largest file, in bytes, that any text-reading path will accept.
MAX_FILE_SIZE = 10 * 2**20

#: Token separating a file's grouping prefix from the rest of its name.
PREFIX_SEPARATOR = "__"


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``deltavision`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    dv_log = logging.getLogger("deltavision")

    for handler in dv_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``deltavision`` package.

    :param mask: the logical OR of the ``DV_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > DV_DEBUG_ALL:
        raise ValueError(f"Invalid deltavision debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    dv_log = logging.getLogger("deltavision")
    for handler in dv_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# DeltaVision exception types
#


class DeltaVisionError(Exception):
    """
    Base class for DeltaVision errors.
    """


class DeltaVisionSystemError(DeltaVisionError):
    """
    An error when calling the operating system, for example a top-level
    directory that cannot be listed.
    """


class DeltaVisionNotFoundError(DeltaVisionError):
    """
    The requested file or directory does not exist.
    """


class DeltaVisionPermissionError(DeltaVisionError):
    """
    The requested file or directory is not accessible.
    """


class DeltaVisionPathError(DeltaVisionError):
    """
    A path of the wrong kind was supplied: for e.g. a directory where a
    regular file was expected.
    """


class DeltaVisionArgumentError(DeltaVisionError):
    """
    An invalid or missing argument was passed to a DeltaVision API call.
    """


class DeltaVisionTooLargeError(DeltaVisionError):
    """
    A file exceeds the maximum size that will be read as text.
    """

    def __init__(self, path: str, size: int, limit: int = MAX_FILE_SIZE):
        """
        Initialise a new `DeltaVisionTooLargeError` exception.

        :param path: The path of the oversized file.
        :param size: The size of the file in bytes.
        :param limit: The maximum permitted size in bytes.
        """
        self.path, self.size, self.limit = path, size, limit
        msg = (
            f"File too large to read entirely: {path} ({size} bytes). "
            f"Maximum size is {limit} bytes."
        )
        super().__init__(msg)


class DeltaVisionBinaryError(DeltaVisionError):
    """
    A file has an extension on the binary denylist and will not be read
    as text.
    """

    def __init__(self, path: str):
        """
        Initialise a new `DeltaVisionBinaryError` exception.

        :param path: The path of the rejected file.
        """
        self.path = path
        super().__init__(f"Binary files are not supported: {path}")


def size_fmt(value):
    """
    Format a size in bytes as a human readable string.

    :param value: The integer value to format.
    :returns: A human readable string reflecting value.
    """
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB"]
    if value == 0:
        return "0B"
    magnitude = math.floor(math.log(abs(value), 1024))
    val = value / math.pow(1024, magnitude)
    if magnitude > 7:
        return f"{val:.1f}YiB"
    return f"{val:3.1f}{suffixes[magnitude]}"


__all__ = [
    # Debug logging - legacy interface
    "DV_DEBUG_READER",
    "DV_DEBUG_PAIRING",
    "DV_DEBUG_DIFF",
    "DV_DEBUG_SEARCH",
    "DV_DEBUG_COMMAND",
    "DV_DEBUG_ALL",
    "set_debug_mask",
    "get_debug_mask",
    # Debug logging - subsystem name interface
    "SubsystemFilter",
    "DV_SUBSYSTEM_READER",
    "DV_SUBSYSTEM_PAIRING",
    "DV_SUBSYSTEM_DIFF",
    "DV_SUBSYSTEM_SEARCH",
    "DV_SUBSYSTEM_COMMAND",
    # Shared limits and conventions
    "MAX_FILE_SIZE",
    "PREFIX_SEPARATOR",
    "DeltaVisionError",
    "DeltaVisionSystemError",
    "DeltaVisionNotFoundError",
    "DeltaVisionPermissionError",
    "DeltaVisionPathError",
    "DeltaVisionArgumentError",
    "DeltaVisionTooLargeError",
    "DeltaVisionBinaryError",
    "size_fmt",
]
