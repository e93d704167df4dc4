# Copyright DeltaVision Developers
#
# deltavision/compare/__init__.py - DeltaVision comparison package
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File comparison package.

Provides content reading, line and word diffs, side by side row
reconciliation, directory pairing and file search. The main entry points
are ``compare_files``, ``compare_directories``, ``search_files`` and
``read_content``.
"""
from .contentdiff import DiffPart, diff_lines, diff_words
from .difftypes import RowType
from .differ import CompareResult, FileMeta, compare_directories, compare_files, compare_pairs
from .filetypes import BINARY_EXTENSIONS, FileTypeDetector, FileTypeInfo, is_binary_path
from .options import CompareOptions, DiffMode, SearchOptions
from .pairing import ComparisonPair, DocumentGroup, FileEntry, pair_directories
from .reader import read_content
from .rows import Row, RowReconciler, RowSide, reconcile
from .search import SearchMatch, SearchResult, SearchResults, SearchStats, search_files

__all__ = [
    "BINARY_EXTENSIONS",
    "CompareOptions",
    "CompareResult",
    "ComparisonPair",
    "DiffMode",
    "DiffPart",
    "DocumentGroup",
    "FileEntry",
    "FileMeta",
    "FileTypeDetector",
    "FileTypeInfo",
    "Row",
    "RowReconciler",
    "RowSide",
    "RowType",
    "SearchMatch",
    "SearchOptions",
    "SearchResult",
    "SearchResults",
    "SearchStats",
    "compare_directories",
    "compare_files",
    "compare_pairs",
    "diff_lines",
    "diff_words",
    "is_binary_path",
    "pair_directories",
    "read_content",
    "reconcile",
    "search_files",
]
