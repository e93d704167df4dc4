# Copyright DeltaVision Developers
#
# tests/compare/test_differ.py - File and directory comparison tests.
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import tempfile
import json
import os

from deltavision import (
    MAX_FILE_SIZE,
    DeltaVisionArgumentError,
    DeltaVisionBinaryError,
    DeltaVisionNotFoundError,
    DeltaVisionSystemError,
    DeltaVisionTooLargeError,
)
from deltavision.compare.differ import (
    FileMeta,
    compare_directories,
    compare_files,
    compare_pairs,
)
from deltavision.compare.difftypes import RowType
from deltavision.compare.options import CompareOptions, DiffMode
from deltavision.compare.pairing import pair_directories

from ._util import BASE_MTIME, make_dirs, write_file

HOUR = 3600


class TestFileMeta(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def test_from_path(self):
        path = write_file(self.tmp_dir.name, "ABC__doc.md", "x" * 1536, BASE_MTIME)
        meta = FileMeta.from_path(path)
        self.assertEqual(meta.size, 1536)
        self.assertEqual(meta.size_str, "1.5KiB")
        # tests/__init__.py sets TZ=UTC
        self.assertEqual(meta.modified, "2020-09-13T12:26:40")
        self.assertEqual(meta.file_type, "markdown documentation")
        self.assertEqual(meta.mime_type, "text/markdown")
        self.assertEqual(meta.category, "document")
        self.assertEqual(meta.to_dict()["full_path"], path)

    def test_from_path_missing(self):
        with self.assertRaises(DeltaVisionNotFoundError):
            FileMeta.from_path(os.path.join(self.tmp_dir.name, "nosuch.txt"))


class TestCompareFiles(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def _write(self, name, content):
        return write_file(self.tmp_dir.name, name, content, BASE_MTIME)

    def test_single_modification(self):
        old = self._write("old.txt", "a\nb\nc\n")
        new = self._write("new.txt", "a\nx\nc\n")
        result = compare_files(old, new)
        self.assertEqual(result.diff_mode, DiffMode.LINE)
        self.assertEqual(
            [row.type for row in result.rows],
            [RowType.UNCHANGED, RowType.MODIFIED, RowType.UNCHANGED],
        )
        self.assertEqual(result.summary, "0 additions, 0 deletions, 1 modifications")
        self.assertTrue(result.has_changes)
        self.assertIsNone(result.word_diff_result)
        self.assertEqual(result.old_content, "a\nb\nc\n")
        self.assertEqual(result.new_content, "a\nx\nc\n")

    def test_identical_files(self):
        old = self._write("old.txt", "same\n")
        new = self._write("new.txt", "same\n")
        result = compare_files(old, new)
        self.assertFalse(result.has_changes)
        self.assertEqual(result.summary, "0 additions, 0 deletions, 0 modifications")

    def test_new_only(self):
        new = self._write("new.txt", "hello\n")
        result = compare_files(None, new)
        self.assertIsNone(result.old_file_path)
        self.assertIsNone(result.old_file_meta)
        self.assertEqual(result.old_content, "")
        self.assertEqual(len(result.rows), 1)
        self.assertEqual(result.rows[0].type, RowType.ADDED)
        self.assertEqual(result.rows[0].line_number, 1)
        self.assertEqual(result.summary, "1 additions, 0 deletions, 0 modifications")

    def test_old_only(self):
        old = self._write("old.txt", "one\ntwo\n")
        result = compare_files(old, None)
        self.assertIsNone(result.new_file_meta)
        self.assertEqual(result.deletions, 2)

    def test_both_missing(self):
        with self.assertRaises(DeltaVisionArgumentError):
            compare_files(None, None)
        with self.assertRaises(DeltaVisionArgumentError):
            compare_files("", "")

    def test_missing_file_propagates(self):
        new = self._write("new.txt", "x\n")
        with self.assertRaises(DeltaVisionNotFoundError):
            compare_files(os.path.join(self.tmp_dir.name, "nosuch.txt"), new)

    def test_binary_file_propagates(self):
        old = self._write("old.txt", "x\n")
        new = self._write("new.gif", "x\n")
        with self.assertRaises(DeltaVisionBinaryError):
            compare_files(old, new)

    def test_too_large_propagates(self):
        old = self._write("old.txt", "x\n")
        new = self._write("new.txt", "")
        os.truncate(new, MAX_FILE_SIZE + 1)
        with self.assertRaises(DeltaVisionTooLargeError):
            compare_files(old, new)

    def test_word_mode(self):
        old = self._write("old.txt", "the quick fox\n")
        new = self._write("new.txt", "the slow fox\n")
        result = compare_files(old, new, "word")
        self.assertEqual(result.diff_mode, DiffMode.WORD)
        self.assertIs(result.word_diff_result, result.rows)
        self.assertIsNotNone(result.rows[0].left.word_diff)

    def test_options_instance(self):
        old = self._write("old.txt", "a\n")
        new = self._write("new.txt", "b\n")
        result = compare_files(old, new, CompareOptions(diff_mode=DiffMode.WORD))
        self.assertEqual(result.diff_mode, DiffMode.WORD)

    def test_bad_mode(self):
        old = self._write("old.txt", "a\n")
        with self.assertRaises(DeltaVisionArgumentError):
            compare_files(old, None, "char")

    def test_to_dict_and_json(self):
        old = self._write("old.txt", "a\n")
        new = self._write("new.txt", "a\nb\n")
        result = compare_files(old, new)
        data = result.to_dict()
        self.assertEqual(data["diff_mode"], "line")
        self.assertIsNone(data["word_diff_result"])
        self.assertEqual(data["old_file_meta"]["size"], 2)
        self.assertEqual(len(data["rows"]), 2)
        self.assertEqual(json.loads(result.json(pretty=True)), data)

    def test_to_dict_word_mode_rows_once(self):
        old = self._write("old.txt", "the quick fox\n")
        new = self._write("new.txt", "the slow fox\n")
        data = compare_files(old, new, "word").to_dict()
        self.assertEqual(data["word_diff_result"], "rows")
        self.assertEqual(len(data["rows"]), 1)
        self.assertIsNotNone(data["rows"][0]["left"]["word_diff"])
        # One modified row: left and right sides each carry the word diff
        self.assertEqual(json.dumps(data).count('"word_diff": ['), 2)

    def test_CompareResult__str__(self):
        old = self._write("old.txt", "a\nb\n")
        new = self._write("new.txt", "a\nx\n")
        text = str(compare_files(old, new))
        self.assertIn(f"--- {old}", text)
        self.assertIn(f"+++ {new}", text)
        self.assertIn("    2 ~ b | x", text)


class TestCompareDirectories(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.old_dir, self.new_dir = make_dirs(self.tmp_dir.name)

    def test_compare_directories(self):
        write_file(self.old_dir, "ABC__Report.txt", '"Q1 Report"\nold\n', BASE_MTIME)
        write_file(
            self.new_dir, "ABC__UpdatedReport.txt", '"Q1 Report"\nnew\n', BASE_MTIME
        )
        write_file(self.new_dir, "NEW__doc.txt", "Fresh\nbody\n", BASE_MTIME + HOUR)
        pairs = compare_directories(self.old_dir, self.new_dir)
        self.assertEqual([pair.kind for pair in pairs], ["new", "matched"])
        for pair in pairs:
            self.assertIsNotNone(pair.comparison)
        matched = pairs[1].comparison
        self.assertEqual(
            [row.type for row in matched.rows],
            [RowType.UNCHANGED, RowType.MODIFIED],
        )
        self.assertEqual(pairs[0].comparison.additions, 2)
        self.assertIn("comparison", pairs[0].to_dict())

    def test_failed_pair_dropped(self):
        write_file(self.new_dir, "A__one.txt", "A\n", BASE_MTIME + HOUR)
        write_file(self.new_dir, "B__two.txt", "B\n", BASE_MTIME)
        pairs = pair_directories(self.old_dir, self.new_dir)
        self.assertEqual(len(pairs), 2)
        os.unlink(os.path.join(self.new_dir, "A__one.txt"))
        compared = compare_pairs(pairs, DiffMode.LINE)
        self.assertEqual([pair.prefix for pair in compared], ["B"])
        self.assertIsNone(pairs[0].comparison)

    def test_failed_pair_dropped_compare_error(self):
        write_file(self.new_dir, "A__one.txt", "A\n", BASE_MTIME)
        with patch(
            "deltavision.compare.differ.compare_files",
            side_effect=OSError(5, "Input/output error"),
        ):
            self.assertEqual(compare_directories(self.old_dir, self.new_dir), [])

    def test_magic_unavailable_drops_pairs(self):
        write_file(self.new_dir, "A__one.txt", "A\n", BASE_MTIME)
        pairs = pair_directories(self.old_dir, self.new_dir)
        options = CompareOptions(use_magic_file_type=True)
        with patch.dict("sys.modules", {"magic": None}):
            self.assertEqual(compare_pairs(pairs, options), [])
            with self.assertRaises(DeltaVisionSystemError):
                compare_files(None, pairs[0].new_file, options)
        self.assertIsNone(pairs[0].comparison)

    def test_missing_directory(self):
        with self.assertRaises(DeltaVisionNotFoundError):
            compare_directories(os.path.join(self.tmp_dir.name, "nosuch"), self.new_dir)
