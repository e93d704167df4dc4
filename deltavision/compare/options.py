# Copyright DeltaVision Developers
#
# deltavision/compare/options.py - DeltaVision comparison options
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Comparison and search options.
"""
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional, Tuple, Union
from argparse import Namespace
from enum import Enum
import logging

from deltavision import DeltaVisionArgumentError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Default cap on the number of search results.
DEFAULT_MAX_RESULTS = 1000


class DiffMode(Enum):
    """
    Enum for the granularity of a comparison.
    """

    LINE = "line"
    WORD = "word"

    @classmethod
    def from_value(cls, value: Union[str, "DiffMode", None]) -> "DiffMode":
        """
        Convert a mode name or ``DiffMode`` into a ``DiffMode``.

        :param value: The mode to convert; ``None`` selects ``LINE``.
        :type value: ``Union[str, DiffMode, None]``
        :returns: The corresponding ``DiffMode``.
        :rtype: ``DiffMode``
        :raises: ``DeltaVisionArgumentError`` for unknown mode names.
        """
        if value is None:
            return cls.LINE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as err:
            raise DeltaVisionArgumentError(f"Unknown diff mode: {value}") from err


def _values_from_args(cls, cmd_args: Namespace, converters=None) -> dict:
    """
    Collect the dataclass fields of ``cls`` that are present and set in
    ``cmd_args``, converting lists to tuples.

    :param cls: The options dataclass.
    :param cmd_args: The command line arguments.
    :type cmd_args: ``Namespace``
    :param converters: Optional map of field name to conversion function.
    :returns: Keyword arguments for ``cls``.
    :rtype: ``dict``
    """
    converters = converters or {}

    def get_value(name: str) -> Any:
        attr = getattr(cmd_args, name)
        if isinstance(attr, list):
            attr = tuple(attr)
        if name in converters:
            attr = converters[name](attr)
        return attr

    field_names = {f.name for f in fields(cls)}
    return {
        name: get_value(name)
        for name in field_names
        if getattr(cmd_args, name, None) is not None
    }


@dataclass(frozen=True)
class CompareOptions:
    """
    File and directory comparison options.
    """

    #: Granularity of the comparison
    diff_mode: DiffMode = DiffMode.LINE
    #: Generate file type information using magic
    use_magic_file_type: bool = False

    def __post_init__(self):
        # Accept "line"/"word" strings from callers and configuration.
        object.__setattr__(self, "diff_mode", DiffMode.from_value(self.diff_mode))

    def __str__(self):
        """
        Return a human readable string representation of this
        ``CompareOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(
            [
                f"diff_mode={self.diff_mode.value}",
                f"use_magic_file_type={self.use_magic_file_type}",
            ]
        )

    @classmethod
    def from_cmd_args(
        cls, cmd_args: Namespace, defaults: Optional["CompareOptions"] = None
    ) -> "CompareOptions":
        """
        Initialise CompareOptions from command line arguments.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :param defaults: Values for arguments that were not given.
        :type defaults: ``Optional[CompareOptions]``
        :returns: A new ``CompareOptions`` instance
        :rtype: ``CompareOptions``
        """
        kwargs = _values_from_args(cls, cmd_args)
        options = replace(defaults, **kwargs) if defaults is not None else cls(**kwargs)
        _log_debug("Initialised CompareOptions from arguments: %s", repr(options))
        return options


@dataclass(frozen=True)
class SearchOptions:
    """
    File name and content search options.
    """

    #: Match the search term against file names
    search_names: bool = True
    #: Match the search term against file content
    search_content: bool = True
    #: Match case exactly
    case_sensitive: bool = False
    #: File extensions (without the leading dot) to include; empty means all
    file_types: Tuple[str, ...] = field(default_factory=tuple)
    #: Stop after this many matching files
    max_results: int = DEFAULT_MAX_RESULTS

    def __post_init__(self):
        object.__setattr__(
            self,
            "file_types",
            tuple(ext.lstrip(".").lower() for ext in self.file_types if ext),
        )
        if self.max_results < 1:
            raise DeltaVisionArgumentError(
                f"max_results must be a positive integer: {self.max_results}"
            )

    def __str__(self):
        """
        Return a human readable string representation of this
        ``SearchOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        items = [
            (key, val) if not isinstance(val, tuple) else (key, " ".join(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    @classmethod
    def from_cmd_args(
        cls, cmd_args: Namespace, defaults: Optional["SearchOptions"] = None
    ) -> "SearchOptions":
        """
        Initialise SearchOptions from command line arguments.

        A comma separated ``file_types`` string is split into extensions.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :param defaults: Values for arguments that were not given.
        :type defaults: ``Optional[SearchOptions]``
        :returns: A new ``SearchOptions`` instance
        :rtype: ``SearchOptions``
        """

        def split_types(value):
            if isinstance(value, str):
                return tuple(ext.strip() for ext in value.split(",") if ext.strip())
            return tuple(value)

        kwargs = _values_from_args(cls, cmd_args, {"file_types": split_types})
        options = replace(defaults, **kwargs) if defaults is not None else cls(**kwargs)
        _log_debug("Initialised SearchOptions from arguments: %s", repr(options))
        return options
