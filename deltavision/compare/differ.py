# Copyright DeltaVision Developers
#
# deltavision/compare/differ.py - DeltaVision file and directory comparison
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level comparison interface.
"""
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from pathlib import Path
import logging
import json

from deltavision import (
    DV_SUBSYSTEM_DIFF,
    DeltaVisionArgumentError,
    DeltaVisionError,
    size_fmt,
)

from .contentdiff import DiffPart, diff_lines
from .difftypes import RowType
from .filetypes import FileTypeDetector
from .options import CompareOptions, DiffMode
from .pairing import ComparisonPair, pair_directories
from .reader import read_content, stat_path
from .rows import Row, reconcile

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_DIFF}, **kwargs)


class FileMeta:
    """
    Display metadata for one side of a comparison.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        full_path: str,
        size: int,
        mtime: float,
        file_type: str,
        mime_type: Optional[str] = None,
        category: Optional[str] = None,
    ):
        """
        Initialise a new ``FileMeta``.

        :param full_path: The path of the file.
        :param size: The file size in bytes.
        :param mtime: The modification time in seconds since the epoch.
        :param file_type: A description of the file type.
        :param mime_type: The detected MIME type.
        :param category: The file type category name.
        """
        self.full_path = full_path
        self.size = size
        self.mtime = mtime
        self.file_type = file_type
        self.mime_type = mime_type
        self.category = category

    @property
    def size_str(self) -> str:
        """The file size as a human readable string."""
        return size_fmt(self.size)

    @property
    def modified(self) -> str:
        """The modification time as an ISO 8601 local time string."""
        return datetime.fromtimestamp(self.mtime).isoformat(timespec="seconds")

    @classmethod
    def from_path(cls, file_path: Union[str, Path], use_magic: bool = False) -> "FileMeta":
        """
        Build ``FileMeta`` for ``file_path``.

        :param file_path: The file to describe.
        :param use_magic: Detect the file type with libmagic.
        :returns: A new ``FileMeta``.
        :rtype: ``FileMeta``
        """
        st = stat_path(file_path)
        type_info = FileTypeDetector().detect_file_type(Path(file_path), use_magic=use_magic)
        return cls(
            str(file_path),
            st.st_size,
            st.st_mtime,
            type_info.description,
            mime_type=type_info.mime_type,
            category=type_info.category.value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``FileMeta`` into a dictionary suitable for encoding as
        JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "full_path": self.full_path,
            "size": self.size,
            "size_str": self.size_str,
            "modified": self.modified,
            "file_type": self.file_type,
            "mime_type": self.mime_type,
            "category": self.category,
        }


# pylint: disable=too-many-instance-attributes
class CompareResult:
    """
    The result of comparing an old and a new file.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        old_file_path: Optional[str],
        new_file_path: Optional[str],
        old_file_meta: Optional[FileMeta],
        new_file_meta: Optional[FileMeta],
        old_content: str,
        new_content: str,
        diff_result: List[DiffPart],
        rows: List[Row],
        diff_mode: DiffMode,
    ):
        self.old_file_path = old_file_path
        self.new_file_path = new_file_path
        self.old_file_meta = old_file_meta
        self.new_file_meta = new_file_meta
        self.old_content = old_content
        self.new_content = new_content
        self.diff_result = diff_result
        self.rows = rows
        self.diff_mode = diff_mode

    @property
    def word_diff_result(self) -> Optional[List[Row]]:
        """The rows, carrying word diffs, in word mode; else ``None``."""
        return self.rows if self.diff_mode == DiffMode.WORD else None

    def _count(self, row_type: RowType) -> int:
        return len([row for row in self.rows if row.type == row_type])

    @property
    def additions(self) -> int:
        """The number of added rows."""
        return self._count(RowType.ADDED)

    @property
    def deletions(self) -> int:
        """The number of removed rows."""
        return self._count(RowType.REMOVED)

    @property
    def modifications(self) -> int:
        """The number of modified rows."""
        return self._count(RowType.MODIFIED)

    @property
    def has_changes(self) -> bool:
        """``True`` if any row differs between the two files."""
        return any(row.type != RowType.UNCHANGED for row in self.rows)

    @property
    def summary(self) -> str:
        """A short summary of the changes."""
        return (
            f"{self.additions} additions, {self.deletions} deletions, "
            f"{self.modifications} modifications"
        )

    def __str__(self):
        """
        Return the rows of this comparison as side by side text.

        :returns: A human readable string.
        :rtype: ``str``
        """
        header = (
            f"--- {self.old_file_path or '/dev/null'}\n"
            f"+++ {self.new_file_path or '/dev/null'}\n"
            f"{self.summary}"
        )
        return "\n".join([header] + [str(row) for row in self.rows])

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``CompareResult`` into a dictionary suitable for
        encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        # Word mode rows are serialised once, under "rows".
        return {
            "old_file_path": self.old_file_path,
            "new_file_path": self.new_file_path,
            "old_file_meta": self.old_file_meta.to_dict() if self.old_file_meta else None,
            "new_file_meta": self.new_file_meta.to_dict() if self.new_file_meta else None,
            "diff_mode": self.diff_mode.value,
            "diff_result": [part.to_dict() for part in self.diff_result],
            "word_diff_result": "rows" if self.word_diff_result is not None else None,
            "rows": [row.to_dict() for row in self.rows],
            "summary": self.summary,
            "old_content": self.old_content,
            "new_content": self.new_content,
        }

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``CompareResult`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


def _as_options(options: Union[CompareOptions, DiffMode, str, None]) -> CompareOptions:
    """Accept a ``CompareOptions`` instance or a bare diff mode."""
    if isinstance(options, CompareOptions):
        return options
    return CompareOptions(diff_mode=DiffMode.from_value(options))


def compare_files(
    old_file_path: Optional[Union[str, Path]],
    new_file_path: Optional[Union[str, Path]],
    options: Union[CompareOptions, DiffMode, str, None] = None,
) -> CompareResult:
    """
    Compare two files.

    Either path may be ``None`` to compare a new-only or old-only file
    against empty content, but not both.

    :param old_file_path: Path to the old file, or ``None``.
    :type old_file_path: ``Optional[Union[str, Path]]``
    :param new_file_path: Path to the new file, or ``None``.
    :type new_file_path: ``Optional[Union[str, Path]]``
    :param options: ``CompareOptions`` or a diff mode (``"line"`` or
                    ``"word"``).
    :returns: The comparison result.
    :rtype: ``CompareResult``
    :raises: ``DeltaVisionArgumentError`` if both paths are ``None``, or
             the ``DeltaVisionError`` raised reading either file.
    """
    if not old_file_path and not new_file_path:
        raise DeltaVisionArgumentError(
            "Both old_file_path and new_file_path cannot be empty"
        )
    options = _as_options(options)
    use_magic = options.use_magic_file_type

    old_content = new_content = ""
    old_meta = new_meta = None

    try:
        if old_file_path:
            old_content = read_content(old_file_path)
            old_meta = FileMeta.from_path(old_file_path, use_magic=use_magic)
        if new_file_path:
            new_content = read_content(new_file_path)
            new_meta = FileMeta.from_path(new_file_path, use_magic=use_magic)
    except DeltaVisionError as err:
        _log_error(
            "Error comparing files %s and %s: %s",
            old_file_path or "null",
            new_file_path or "null",
            err,
        )
        raise

    parts = diff_lines(old_content, new_content)
    rows = reconcile(parts, options.diff_mode)
    _log_debug_diff(
        "Compared %s and %s: %d parts, %d rows",
        old_file_path,
        new_file_path,
        len(parts),
        len(rows),
    )

    return CompareResult(
        str(old_file_path) if old_file_path else None,
        str(new_file_path) if new_file_path else None,
        old_meta,
        new_meta,
        old_content,
        new_content,
        parts,
        rows,
        options.diff_mode,
    )


def compare_pairs(
    pairs: List[ComparisonPair],
    options: Union[CompareOptions, DiffMode, str, None] = None,
) -> List[ComparisonPair]:
    """
    Compare each of ``pairs``, attaching the result as ``pair.comparison``.

    Pairs whose comparison fails are logged and left out of the returned
    list; the remaining pairs keep their order.

    :param pairs: The pairs to compare.
    :type pairs: ``List[ComparisonPair]``
    :param options: ``CompareOptions`` or a diff mode.
    :returns: The successfully compared pairs.
    :rtype: ``List[ComparisonPair]``
    """
    options = _as_options(options)
    compared = []
    for pair in pairs:
        try:
            pair.comparison = compare_files(pair.old_file, pair.new_file, options)
        except (DeltaVisionError, OSError) as err:
            _log_warn(
                "Error comparing file pair %s and %s: %s",
                pair.old_file or "new file",
                pair.new_file or "old file",
                err,
            )
            continue
        compared.append(pair)
    return compared


def compare_directories(
    old_dir: Union[str, Path],
    new_dir: Union[str, Path],
    options: Union[CompareOptions, DiffMode, str, None] = None,
) -> List[ComparisonPair]:
    """
    Pair the files of ``old_dir`` and ``new_dir`` and compare each pair.

    :param old_dir: The directory holding the old files.
    :type old_dir: ``Union[str, Path]``
    :param new_dir: The directory holding the new files.
    :type new_dir: ``Union[str, Path]``
    :param options: ``CompareOptions`` or a diff mode.
    :returns: Compared pairs, newest first.
    :rtype: ``List[ComparisonPair]``
    """
    pairs = pair_directories(old_dir, new_dir)
    compared = compare_pairs(pairs, options)
    _log_info(
        "Compared %d of %d file pairs between %s and %s",
        len(compared),
        len(pairs),
        old_dir,
        new_dir,
    )
    return compared
