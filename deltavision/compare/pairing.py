# Copyright DeltaVision Developers
#
# deltavision/compare/pairing.py - DeltaVision directory pairing
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Match the files of an old and a new directory into comparison pairs.

Files are grouped by a naming convention: the *prefix* is the part of the
file name before the first ``__`` and the *title* comes from the first line
of the file. Files lacking either are left out of pairing.

For each ``prefix:title`` key found on both sides the lexicographically
first old file is compared with the lexicographically last new file; the
file names are assumed to encode their version. Keys found on one side only
produce new-only and old-only pairs. Independently, any new group holding
two or more files also produces a pair comparing its two most recently
modified files, so a new group may appear in two pairs.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from pathlib import Path
from math import floor
import logging
import json
import time
import os
import re

from deltavision import (
    PREFIX_SEPARATOR,
    DV_SUBSYSTEM_PAIRING,
    DeltaVisionArgumentError,
    DeltaVisionError,
    DeltaVisionNotFoundError,
    DeltaVisionPathError,
    DeltaVisionPermissionError,
    DeltaVisionSystemError,
)

from .reader import read_content

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_pairing(msg, *args, **kwargs):
    """A wrapper for pairing subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_PAIRING}, **kwargs)


_QUOTED_TITLE_RE = re.compile(r'"([^"]*)"')
_MARKDOWN_TITLE_RE = re.compile(r"^#\s+(.+)$")
# Whitespace, including a byte order mark, around the first line.
_TITLE_TRIM_RE = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


@dataclass(frozen=True)
class FileEntry:
    """
    A file discovered in one of the compared directories.
    """

    path: str
    filename: str

    @classmethod
    def from_path(cls, file_path: Union[str, Path]) -> "FileEntry":
        """Return a ``FileEntry`` for ``file_path``."""
        return cls(str(file_path), os.path.basename(file_path))


@dataclass
class DocumentGroup:
    """
    All files of one directory sharing a prefix and a title.
    """

    prefix: str
    title: str
    files: List[FileEntry] = field(default_factory=list)

    @property
    def key(self) -> str:
        """The ``prefix:title`` grouping key."""
        return group_key(self.prefix, self.title)

    def sorted_files(self) -> List[FileEntry]:
        """Return this group's files sorted by file name."""
        return sorted(self.files, key=lambda entry: entry.filename)

    @property
    def oldest(self) -> FileEntry:
        """The lexicographically first file of the group."""
        return self.sorted_files()[0]

    @property
    def newest(self) -> FileEntry:
        """The lexicographically last file of the group."""
        return self.sorted_files()[-1]


# pylint: disable=too-many-instance-attributes
class ComparisonPair:
    """
    One unit of directory comparison output.

    At most one of ``is_new_file``, ``is_old_file`` and
    ``is_new_versions_compare`` is set; none set means a matched old and new
    file.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        prefix: str,
        title: str,
        old_file: Optional[FileEntry],
        new_file: Optional[FileEntry],
        timestamp: float,
        is_new_file: bool = False,
        is_old_file: bool = False,
        is_new_versions_compare: bool = False,
        time_difference: Optional[str] = None,
    ):
        """
        Initialise a new ``ComparisonPair``.

        :param prefix: The file name prefix shared by the pair.
        :param title: The document title shared by the pair.
        :param old_file: The old side, or ``None`` for a new-only pair.
        :param new_file: The new side, or ``None`` for an old-only pair.
        :param timestamp: Modification time, in seconds since the epoch,
                          of the file governing the pair's sort position.
        :param is_new_file: The pair has only a new file.
        :param is_old_file: The pair has only an old file.
        :param is_new_versions_compare: The pair compares two versions found
                                        in the new directory.
        :param time_difference: Human readable age difference of the two
                                versions for version comparisons.
        """
        if sum((is_new_file, is_old_file, is_new_versions_compare)) > 1:
            raise DeltaVisionArgumentError(
                "ComparisonPair classification flags are mutually exclusive"
            )
        self.prefix = prefix
        self.title = title
        self.old_file = old_file.path if old_file else None
        self.new_file = new_file.path if new_file else None
        self.old_file_name = old_file.filename if old_file else None
        self.new_file_name = new_file.filename if new_file else None
        self.timestamp = timestamp
        self.is_new_file = is_new_file
        self.is_old_file = is_old_file
        self.is_new_versions_compare = is_new_versions_compare
        self.time_difference = time_difference
        #: ``CompareResult`` attached by ``compare_directories()``
        self.comparison = None

    @property
    def is_matched(self) -> bool:
        """``True`` for a plain old versus new pair."""
        return not (self.is_new_file or self.is_old_file or self.is_new_versions_compare)

    @property
    def kind(self) -> str:
        """A short name for the pair classification."""
        if self.is_new_file:
            return "new"
        if self.is_old_file:
            return "old"
        if self.is_new_versions_compare:
            return "versions"
        return "matched"

    def __str__(self):
        """
        Return a one line human readable description of this pair.

        :returns: A human readable string.
        :rtype: ``str``
        """
        when = datetime.fromtimestamp(self.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        extra = f" ({self.time_difference} apart)" if self.time_difference else ""
        return (
            f"[{self.kind}] {self.prefix}:{self.title} "
            f"{self.old_file_name or '-'} -> {self.new_file_name or '-'} "
            f"{when}{extra}"
        )

    def __repr__(self):
        return (
            f"ComparisonPair({self.prefix!r}, {self.title!r}, "
            f"{self.old_file!r}, {self.new_file!r}, {self.timestamp!r}, "
            f"kind={self.kind!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``ComparisonPair`` into a dictionary suitable for
        encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        out = {
            "prefix": self.prefix,
            "title": self.title,
            "old_file": self.old_file,
            "new_file": self.new_file,
            "old_file_name": self.old_file_name,
            "new_file_name": self.new_file_name,
            "timestamp": self.timestamp,
            "is_new_file": self.is_new_file,
            "is_old_file": self.is_old_file,
            "is_new_versions_compare": self.is_new_versions_compare,
        }
        if self.is_new_versions_compare:
            out["time_difference"] = self.time_difference
        if self.comparison is not None:
            out["comparison"] = self.comparison.to_dict()
        return out

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``ComparisonPair`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


def group_key(prefix: str, title: str) -> str:
    """Return the grouping key for ``prefix`` and ``title``."""
    return f"{prefix}:{title}"


def extract_prefix(file_path: Union[str, Path]) -> Optional[str]:
    """
    Return the part of the file name of ``file_path`` before the first
    ``__`` separator.

    :param file_path: The path of the file.
    :type file_path: ``Union[str, Path]``
    :returns: The prefix, or ``None`` if the name has no separator or the
              separator starts the name.
    :rtype: ``Optional[str]``
    """
    prefix, sep, _ = os.path.basename(file_path).partition(PREFIX_SEPARATOR)
    if not sep or not prefix:
        return None
    return prefix


def extract_title(content: str) -> Optional[str]:
    """
    Extract a document title from the first line of ``content``.

    The first of these that applies wins: the text between the first pair
    of double quotes, the text of a markdown heading (``# Title``), or the
    whole trimmed line.

    :param content: The file content.
    :type content: ``str``
    :returns: The title, or ``None`` if the first line yields none.
    :rtype: ``Optional[str]``
    """
    first_line = _TITLE_TRIM_RE.sub("", content.split("\n", 1)[0])

    match = _QUOTED_TITLE_RE.search(first_line)
    if match:
        # Empty quotes give an empty title rather than falling through.
        return match.group(1) or None

    match = _MARKDOWN_TITLE_RE.match(first_line)
    if match:
        return match.group(1)

    return first_line or None


def format_time_difference(seconds: float) -> str:
    """
    Format an age difference as ``"{d}d {h}h"``, ``"{h}h {m}m"`` or
    ``"{m}m"`` depending on its magnitude.

    :param seconds: The difference in seconds.
    :type seconds: ``float``
    :returns: The formatted difference.
    :rtype: ``str``
    """
    minutes = floor(seconds / 60)
    hours = minutes // 60
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def list_directory(dir_path: Union[str, Path]) -> List[str]:
    """
    Return the paths of the regular files directly inside ``dir_path``,
    sorted by name.

    :param dir_path: The directory to list.
    :type dir_path: ``Union[str, Path]``
    :returns: A list of file paths.
    :rtype: ``List[str]``
    :raises: ``DeltaVisionNotFoundError``, ``DeltaVisionPermissionError``,
             ``DeltaVisionPathError`` or ``DeltaVisionSystemError`` if the
             directory cannot be listed.
    """
    try:
        with os.scandir(dir_path) as entries:
            files = [entry.path for entry in entries if entry.is_file()]
    except FileNotFoundError as err:
        raise DeltaVisionNotFoundError(f"Directory not found: {dir_path}") from err
    except NotADirectoryError as err:
        raise DeltaVisionPathError(f"Not a directory: {dir_path}") from err
    except PermissionError as err:
        raise DeltaVisionPermissionError(f"Permission denied: {dir_path}") from err
    except OSError as err:
        raise DeltaVisionSystemError(
            f"Error reading directory {dir_path}: {err.strerror or err}"
        ) from err

    files.sort()
    _log_debug_pairing("Found %d files in %s", len(files), dir_path)
    return files


def group_files(files: List[str]) -> Dict[str, DocumentGroup]:
    """
    Group ``files`` by prefix and document title.

    Files without a prefix or title are skipped, as are files that cannot
    be read.

    :param files: The file paths to group.
    :type files: ``List[str]``
    :returns: A map of ``prefix:title`` keys to groups.
    :rtype: ``Dict[str, DocumentGroup]``
    """
    groups: Dict[str, DocumentGroup] = {}

    for file_path in files:
        prefix = extract_prefix(file_path)
        if not prefix:
            _log_debug_pairing("Skipping file without prefix: %s", file_path)
            continue

        try:
            content = read_content(file_path)
        except (DeltaVisionError, OSError) as err:
            _log_warn("Error processing file %s: %s", file_path, err)
            continue

        title = extract_title(content)
        if not title:
            _log_debug_pairing("Skipping file without title: %s", file_path)
            continue

        key = group_key(prefix, title)
        if key not in groups:
            groups[key] = DocumentGroup(prefix, title)
        groups[key].files.append(FileEntry.from_path(file_path))

    return groups


def _file_mtime(entry: FileEntry, default: Optional[float] = None) -> float:
    """
    Return the modification time of ``entry``.

    :param entry: The file to stat.
    :param default: Value to return if the stat fails; ``None`` means the
                    current time.
    :returns: Modification time in seconds since the epoch.
    """
    try:
        return os.stat(entry.path).st_mtime
    except OSError as err:
        _log_warn("Error getting file stats for %s: %s", entry.path, err)
        return time.time() if default is None else default


def _version_pair(group: DocumentGroup) -> Optional[ComparisonPair]:
    """
    Return a pair comparing the two most recently modified files of
    ``group``, or ``None`` if it has fewer than two files or the two share a
    modification time.
    """
    if len(group.files) < 2:
        return None

    dated = [(_file_mtime(entry, default=0.0), entry) for entry in group.files]
    dated.sort(key=lambda item: item[0], reverse=True)
    (newest_mtime, newest), (previous_mtime, previous) = dated[0], dated[1]

    if newest_mtime == previous_mtime:
        return None

    time_difference = format_time_difference(newest_mtime - previous_mtime)
    _log_debug_pairing(
        "Added version comparison for %s: %s vs %s (%s apart)",
        group.title,
        previous.filename,
        newest.filename,
        time_difference,
    )
    return ComparisonPair(
        group.prefix,
        group.title,
        previous,
        newest,
        newest_mtime,
        is_new_versions_compare=True,
        time_difference=time_difference,
    )


def pair_directories(old_dir: Union[str, Path], new_dir: Union[str, Path]) -> List[ComparisonPair]:
    """
    Select the files of ``old_dir`` and ``new_dir`` to compare.

    :param old_dir: The directory holding the old files.
    :type old_dir: ``Union[str, Path]``
    :param new_dir: The directory holding the new files.
    :type new_dir: ``Union[str, Path]``
    :returns: Comparison pairs sorted by timestamp, newest first.
    :rtype: ``List[ComparisonPair]``
    :raises: ``DeltaVisionArgumentError`` if either directory is missing
             from the arguments, or a ``DeltaVisionError`` if either
             directory cannot be listed.
    """
    if not old_dir or not new_dir:
        raise DeltaVisionArgumentError("Both old and new directories are required")

    _log_info("Selecting files to compare between: %s and %s", old_dir, new_dir)
    old_files = list_directory(old_dir)
    new_files = list_directory(new_dir)

    old_groups = group_files(old_files)
    new_groups = group_files(new_files)
    _log_debug_pairing(
        "Grouped into %d old groups and %d new groups",
        len(old_groups),
        len(new_groups),
    )

    pairs: List[ComparisonPair] = []

    for key, old_group in old_groups.items():
        if key not in new_groups:
            continue
        newest = new_groups[key].newest
        pairs.append(
            ComparisonPair(
                old_group.prefix,
                old_group.title,
                old_group.oldest,
                newest,
                _file_mtime(newest),
            )
        )

    for key, new_group in new_groups.items():
        if key in old_groups:
            continue
        newest = new_group.newest
        pairs.append(
            ComparisonPair(
                new_group.prefix,
                new_group.title,
                None,
                newest,
                _file_mtime(newest),
                is_new_file=True,
            )
        )

    for key, old_group in old_groups.items():
        if key in new_groups:
            continue
        oldest = old_group.oldest
        pairs.append(
            ComparisonPair(
                old_group.prefix,
                old_group.title,
                oldest,
                None,
                _file_mtime(oldest),
                is_old_file=True,
            )
        )

    for new_group in new_groups.values():
        version_pair = _version_pair(new_group)
        if version_pair is not None:
            pairs.append(version_pair)

    # Stable sort: equal timestamps keep their discovery order.
    pairs.sort(key=lambda pair: pair.timestamp, reverse=True)

    _log_debug_pairing(
        "Final comparison list contains %d file pairs "
        "(matched=%d, new=%d, old=%d, versions=%d)",
        len(pairs),
        len([p for p in pairs if p.is_matched]),
        len([p for p in pairs if p.is_new_file]),
        len([p for p in pairs if p.is_old_file]),
        len([p for p in pairs if p.is_new_versions_compare]),
    )
    return pairs
