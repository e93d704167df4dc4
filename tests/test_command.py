# Copyright DeltaVision Developers
#
# tests/test_command.py - CLI layer tests
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
from io import StringIO
import tempfile
import logging
import json
import os

import deltavision
import deltavision.command as command

from tests import MockArgs

from .compare._util import BASE_MTIME, make_dirs, write_file

log = logging.getLogger()


class CommandTestsBase(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        # Keep tests independent of any system configuration file.
        self.config = os.path.join(self.tmp_dir.name, "nosuch.conf")

    def tearDown(self):
        log.debug("Tearing down %s", self._testMethodName)
        deltavision.set_debug_mask(0)

    def get_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``deltavision`` command.

        :returns: A list of command arguments.
        """
        return ["deltavision", "--config", self.config]

    def get_debug_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``deltavision`` command, with verbose logging and debug enabled.

        :returns: A list of command arguments.
        """
        return self.get_main_args() + ["-vv", "--debug=all"]

    def run_main(self, args):
        with patch("sys.stdout", new_callable=StringIO) as stdout:
            status = command.main(args)
        return status, stdout.getvalue()


class CommandTestsSimple(CommandTestsBase):
    """
    Test command interfaces
    """

    def test_set_debug_none(self):
        args = MockArgs()
        command.set_debug(args.debug)

    def test_set_debug_single(self):
        args = MockArgs()
        args.debug = "pairing"
        command.set_debug(args.debug)
        self.assertEqual(deltavision.get_debug_mask(), deltavision.DV_DEBUG_PAIRING)

    def test_set_debug_list(self):
        args = MockArgs()
        args.debug = "reader,pairing,diff,search,command"
        command.set_debug(args.debug)
        self.assertEqual(deltavision.get_debug_mask(), deltavision.DV_DEBUG_ALL)

    def test_set_debug_all(self):
        args = MockArgs()
        args.debug = "all"
        command.set_debug(args.debug)
        self.assertEqual(deltavision.get_debug_mask(), deltavision.DV_DEBUG_ALL)

    def test_set_debug_single_bad(self):
        args = MockArgs()
        args.debug = "nosuch"
        with self.assertRaises(ValueError):
            command.set_debug(args.debug)

    def test_main_version(self):
        args = self.get_debug_main_args()
        args += ["--version"]
        with self.assertRaises(SystemExit):
            command.main(args)

    def test_main_too_few_args(self):
        args = self.get_debug_main_args()
        r = command.main(args)
        self.assertEqual(r, 1)

    def test_main_bad_command(self):
        args = self.get_debug_main_args()
        args += ["nosuch", "command"]
        with self.assertRaises(SystemExit):
            command.main(args)

    def test_main_bad_debug(self):
        args = self.get_main_args() + ["--debug=nosuch", "cat", "x"]
        status, _ = self.run_main(args)
        self.assertEqual(status, 1)


class CommandCompareTests(CommandTestsBase):
    def setUp(self):
        super().setUp()
        self.old = write_file(self.tmp_dir.name, "old.txt", "a\nb\nc\n", BASE_MTIME)
        self.new = write_file(self.tmp_dir.name, "new.txt", "a\nx\nc\n", BASE_MTIME)

    def test_compare_text(self):
        args = self.get_main_args() + ["compare", "--old", self.old, "--new", self.new]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertIn("0 additions, 0 deletions, 1 modifications", out)
        self.assertIn("    2 ~ b | x", out)

    def test_compare_json_word(self):
        args = self.get_debug_main_args() + [
            "compare",
            "--old",
            self.old,
            "--new",
            self.new,
            "--mode",
            "word",
            "--json",
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        data = json.loads(out)
        self.assertEqual(data["diff_mode"], "word")
        self.assertEqual(data["word_diff_result"], "rows")

    def test_compare_new_only(self):
        args = self.get_main_args() + ["compare", "--new", self.new]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertIn("--- /dev/null", out)
        self.assertIn("3 additions", out)

    def test_compare_no_files(self):
        status, _ = self.run_main(self.get_main_args() + ["compare"])
        self.assertEqual(status, 1)

    def test_compare_missing_file(self):
        args = self.get_main_args() + [
            "compare",
            "--old",
            os.path.join(self.tmp_dir.name, "nosuch.txt"),
            "--new",
            self.new,
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 1)
        self.assertEqual(out, "")

    def test_compare_mode_from_config(self):
        with open(self.config, "w", encoding="utf-8") as f:
            f.write("[Global]\nDiffMode = word\n")
        args = self.get_main_args() + [
            "compare", "--old", self.old, "--new", self.new, "--json"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(out)["diff_mode"], "word")

        # Command line overrides the configuration file
        args += ["--mode", "line"]
        status, out = self.run_main(args)
        self.assertEqual(json.loads(out)["diff_mode"], "line")


class CommandCompareDirsTests(CommandTestsBase):
    def setUp(self):
        super().setUp()
        self.old_dir, self.new_dir = make_dirs(self.tmp_dir.name)
        write_file(self.old_dir, "ABC__Report.txt", '"Q1 Report"\nold\n', BASE_MTIME)
        write_file(
            self.new_dir, "ABC__UpdatedReport.txt", '"Q1 Report"\nnew\n', BASE_MTIME
        )

    def test_compare_dirs_text(self):
        args = self.get_main_args() + ["compare-dirs", self.old_dir, self.new_dir]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertIn("[matched] ABC:Q1 Report", out)
        self.assertIn("~ old | new", out)

    def test_compare_dirs_summary(self):
        args = self.get_main_args() + [
            "compare-dirs", self.old_dir, self.new_dir, "--summary"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertIn("0 additions, 0 deletions, 1 modifications", out)
        self.assertNotIn("~ old | new", out)

    def test_compare_dirs_pairs_only_json(self):
        args = self.get_main_args() + [
            "compare-dirs", self.old_dir, self.new_dir, "--pairs-only", "--json"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        pairs = json.loads(out)
        self.assertEqual(len(pairs), 1)
        self.assertEqual(pairs[0]["prefix"], "ABC")
        self.assertNotIn("comparison", pairs[0])

    def test_compare_dirs_json(self):
        args = self.get_main_args() + [
            "compare-dirs", self.old_dir, self.new_dir, "--json", "--pretty"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        pairs = json.loads(out)
        self.assertIn("comparison", pairs[0])

    def test_compare_dirs_missing(self):
        args = self.get_main_args() + [
            "compare-dirs", os.path.join(self.tmp_dir.name, "nosuch"), self.new_dir
        ]
        status, _ = self.run_main(args)
        self.assertEqual(status, 1)


class CommandSearchTests(CommandTestsBase):
    def setUp(self):
        super().setUp()
        self.root = os.path.join(self.tmp_dir.name, "docs")
        write_file(self.root, "needle.txt", "hay\n", BASE_MTIME)
        write_file(self.root, "hay.md", "one\nNeedle two\n", BASE_MTIME)

    def test_search_json(self):
        args = self.get_main_args() + ["search", self.root, "needle", "--json"]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        data = json.loads(out)
        self.assertTrue(data["success"])
        self.assertEqual(data["stats"]["matches_found"], 2)

    def test_search_options(self):
        args = self.get_main_args() + [
            "search", self.root, "Needle", "--no-names", "-c", "-t", "md", "-m", "5"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 0)
        self.assertIn("hay.md:", out)
        self.assertIn("2:0: Needle two", out)
        self.assertNotIn("needle.txt", out)

    def test_search_failure_json(self):
        args = self.get_main_args() + [
            "search", os.path.join(self.tmp_dir.name, "nosuch"), "x", "--json"
        ]
        status, out = self.run_main(args)
        self.assertEqual(status, 1)
        data = json.loads(out)
        self.assertFalse(data["success"])
        self.assertIn("nosuch", data["error"])

    def test_search_bad_max_results(self):
        args = self.get_main_args() + ["search", self.root, "x", "-m", "0"]
        status, _ = self.run_main(args)
        self.assertEqual(status, 1)


class CommandCatTests(CommandTestsBase):
    def test_cat(self):
        path = write_file(self.tmp_dir.name, "a.txt", "line1\nline2\n")
        status, out = self.run_main(self.get_main_args() + ["cat", path])
        self.assertEqual(status, 0)
        self.assertEqual(out, "line1\nline2\n")

    def test_cat_json(self):
        path = write_file(self.tmp_dir.name, "a.txt", "x\n")
        status, out = self.run_main(self.get_main_args() + ["cat", path, "--json"])
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(out), {"path": path, "content": "x\n"})

    def test_cat_binary(self):
        path = write_file(self.tmp_dir.name, "a.pdf", "x\n")
        status, out = self.run_main(self.get_main_args() + ["cat", path])
        self.assertEqual(status, 1)
        self.assertEqual(out, "")
