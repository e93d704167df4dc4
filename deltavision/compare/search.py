# Copyright DeltaVision Developers
#
# deltavision/compare/search.py - DeltaVision file name and content search
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Recursive file name and content search.
"""
from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone
from pathlib import Path
import logging
import json
import os

from deltavision import (
    DV_SUBSYSTEM_SEARCH,
    DeltaVisionArgumentError,
    DeltaVisionError,
    DeltaVisionNotFoundError,
    DeltaVisionPathError,
    DeltaVisionPermissionError,
    DeltaVisionSystemError,
)

from .filetypes import file_extension
from .options import SearchOptions
from .reader import read_content

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_search(msg, *args, **kwargs):
    """A wrapper for search subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_SEARCH}, **kwargs)


class SearchMatch:
    """
    A line of file content matching the search term.
    """

    def __init__(self, line_number: int, line_content: str, position: int):
        """
        Initialise a new ``SearchMatch``.

        :param line_number: The 1-based number of the matching line.
        :param line_content: The matching line with surrounding whitespace
                             removed.
        :param position: Offset of the match in the line before whitespace
                         was removed.
        """
        self.line_number = line_number
        self.line_content = line_content
        self.position = position

    def __str__(self):
        return f"{self.line_number}:{self.position}: {self.line_content}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``SearchMatch`` into a dictionary suitable for encoding
        as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "line_number": self.line_number,
            "line_content": self.line_content,
            "position": self.position,
        }


class SearchResult:
    """
    A file matching the search term by name or by content.
    """

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        file_path: str,
        file_name: str,
        in_name: bool,
        in_content: List[SearchMatch],
        size: int,
        mtime: float,
    ):
        self.file_path = file_path
        self.file_name = file_name
        self.in_name = in_name
        self.in_content = in_content
        self.size = size
        self.mtime = mtime

    @property
    def modified_time(self) -> str:
        """The modification time as an ISO 8601 UTC timestamp."""
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat()

    def __str__(self):
        """
        Return a human readable representation of this result.

        :returns: A human readable string.
        :rtype: ``str``
        """
        if self.in_name:
            return f"{self.file_path}: name match"
        return "\n".join(
            [f"{self.file_path}:"] + [f"  {match}" for match in self.in_content]
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``SearchResult`` into a dictionary suitable for encoding
        as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "file_path": self.file_path,
            "file_name": self.file_name,
            "matches": {
                "in_name": self.in_name,
                "in_content": [match.to_dict() for match in self.in_content],
            },
            "metadata": {
                "size": self.size,
                "modified_time": self.modified_time,
            },
        }


class SearchStats:
    """
    Counters accumulated over a search.
    """

    def __init__(self):
        self.files_scanned = 0
        self.matches_found = 0
        self.directories_scanned = 0

    def __str__(self):
        return (
            f"{self.files_scanned} files scanned, "
            f"{self.matches_found} matches found, "
            f"{self.directories_scanned} directories scanned"
        )

    def to_dict(self) -> Dict[str, int]:
        """
        Convert these ``SearchStats`` into a dictionary.

        :returns: A dictionary of counter names to values.
        :rtype: ``Dict[str, int]``
        """
        return {
            "files_scanned": self.files_scanned,
            "matches_found": self.matches_found,
            "directories_scanned": self.directories_scanned,
        }


class SearchResults:
    """
    The outcome of ``search_files()``.
    """

    def __init__(self, results: List[SearchResult], stats: SearchStats):
        self.success = True
        self.results = results
        self.stats = stats

    def __len__(self):
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    def __str__(self):
        lines = [str(result) for result in self.results]
        lines.append(str(self.stats))
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert these ``SearchResults`` into a dictionary suitable for
        encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "success": self.success,
            "results": [result.to_dict() for result in self.results],
            "stats": self.stats.to_dict(),
        }

    def json(self, pretty=False) -> str:
        """
        Return a string representation of these ``SearchResults`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


def search_content(file_path: Union[str, Path], term: str, case_sensitive: bool = False) -> List[SearchMatch]:
    """
    Search the content of ``file_path`` for ``term``.

    Files that cannot be read as text (oversized, binary, unreadable or
    vanished) produce no matches.

    :param file_path: The file to search.
    :type file_path: ``Union[str, Path]``
    :param term: The search term, already lower cased unless
                 ``case_sensitive`` is set.
    :type term: ``str``
    :param case_sensitive: Match case exactly.
    :type case_sensitive: ``bool``
    :returns: One ``SearchMatch`` per matching line.
    :rtype: ``List[SearchMatch]``
    """
    try:
        content = read_content(file_path)
    except DeltaVisionError as err:
        _log_debug_search("Skipping content of %s: %s", file_path, err)
        return []

    matches = []
    for index, raw_line in enumerate(content.split("\n")):
        line = raw_line if case_sensitive else raw_line.lower()
        position = line.find(term)
        if position >= 0:
            matches.append(SearchMatch(index + 1, raw_line.strip(), position))
    return matches


class _Searcher:
    """
    Recursive directory walker accumulating search results.
    """

    def __init__(self, term: str, options: SearchOptions):
        self.options = options
        self.term = term if options.case_sensitive else term.lower()
        self.results: List[SearchResult] = []
        self.stats = SearchStats()

    @property
    def full(self) -> bool:
        """``True`` once ``max_results`` results have been found."""
        return len(self.results) >= self.options.max_results

    def _add_result(self, entry: os.DirEntry, in_name: bool, in_content: List[SearchMatch]):
        try:
            st = entry.stat()
        except OSError as err:
            _log_debug_search("Cannot stat search match %s: %s", entry.path, err)
            return
        self.results.append(
            SearchResult(entry.path, entry.name, in_name, in_content, st.st_size, st.st_mtime)
        )
        self.stats.matches_found += 1

    def _search_file(self, entry: os.DirEntry):
        self.stats.files_scanned += 1

        file_types = self.options.file_types
        if file_types and file_extension(entry.name) not in file_types:
            return

        if self.options.search_names:
            name = entry.name if self.options.case_sensitive else entry.name.lower()
            if self.term in name:
                self._add_result(entry, True, [])
                return

        if self.options.search_content:
            matches = search_content(entry.path, self.term, self.options.case_sensitive)
            if matches:
                self._add_result(entry, False, matches)

    def search_directory(self, dir_path: str, entries: Optional[List[os.DirEntry]] = None):
        """
        Search ``dir_path`` and its subdirectories.

        :param dir_path: The directory to search.
        :param entries: Pre-read directory entries for ``dir_path``.
        """
        if self.full:
            return

        self.stats.directories_scanned += 1
        if entries is None:
            try:
                entries = _scan(dir_path)
            except OSError as err:
                _log_debug_search("Error reading directory %s: %s", dir_path, err)
                return

        for entry in entries:
            if self.full:
                return
            try:
                if entry.is_dir(follow_symlinks=False):
                    self.search_directory(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    self._search_file(entry)
            except OSError as err:
                _log_debug_search("Error examining %s: %s", entry.path, err)


def _scan(dir_path: str) -> List[os.DirEntry]:
    with os.scandir(dir_path) as it:
        return sorted(it, key=lambda entry: entry.name)


def search_files(
    directory: Union[str, Path],
    term: str,
    options: Optional[SearchOptions] = None,
) -> SearchResults:
    """
    Search the files below ``directory`` for ``term`` in their names and
    content.

    A file whose name matches is reported without searching its content.
    The search stops once ``options.max_results`` matching files have been
    found.

    :param directory: The directory to search.
    :type directory: ``Union[str, Path]``
    :param term: The term to search for.
    :type term: ``str``
    :param options: Search options; defaults apply if ``None``.
    :type options: ``Optional[SearchOptions]``
    :returns: The matching files and search statistics.
    :rtype: ``SearchResults``
    :raises: ``DeltaVisionArgumentError`` for an empty term or directory,
             ``DeltaVisionNotFoundError``, ``DeltaVisionPathError`` or
             ``DeltaVisionPermissionError`` if ``directory`` cannot be read.
    """
    if not term:
        raise DeltaVisionArgumentError("Search term is required")
    if not directory:
        raise DeltaVisionArgumentError("Search directory is required")
    options = options or SearchOptions()

    root = str(directory)
    _log_debug_search("Starting search in %s for '%s'", root, term)
    try:
        entries = _scan(root)
    except FileNotFoundError as err:
        raise DeltaVisionNotFoundError(f"Directory not found: {root}") from err
    except NotADirectoryError as err:
        raise DeltaVisionPathError(f"Not a directory: {root}") from err
    except PermissionError as err:
        raise DeltaVisionPermissionError(f"Permission denied: {root}") from err
    except OSError as err:
        raise DeltaVisionSystemError(
            f"Cannot read directory {root}: {err.strerror or err}"
        ) from err

    searcher = _Searcher(term, options)
    searcher.search_directory(root, entries)

    _log_debug_search(
        "Search completed: %d files scanned, %d matches found",
        searcher.stats.files_scanned,
        searcher.stats.matches_found,
    )
    return SearchResults(searcher.results, searcher.stats)
