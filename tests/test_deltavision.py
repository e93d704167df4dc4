# Copyright DeltaVision Developers
#
# tests/test_deltavision.py - deltavision package unit tests
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import logging

import deltavision

log = logging.getLogger()


class DeltaVisionTestsSimple(unittest.TestCase):
    """Test deltavision module"""

    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down (%s)", self._testMethodName)
        deltavision.set_debug_mask(0)

    def test_set_debug_mask(self):
        deltavision.set_debug_mask(deltavision.DV_DEBUG_ALL)
        self.assertEqual(deltavision.get_debug_mask(), deltavision.DV_DEBUG_ALL)

    def test_set_debug_mask_bad_mask(self):
        with self.assertRaises(ValueError):
            deltavision.set_debug_mask(deltavision.DV_DEBUG_ALL + 1)

    def test_set_debug_mask_negative(self):
        with self.assertRaises(ValueError):
            deltavision.set_debug_mask(-1)

    def test_SubsystemFilter(self):
        # Start with no subsystems enabled
        deltavision.set_debug_mask(0)
        sf = deltavision.SubsystemFilter("deltavision")
        self.assertEqual(sf.enabled_subsystems, set())
        # Enable a couple and ensure new filters initialise from cache
        deltavision.set_debug_mask(
            deltavision.DV_DEBUG_DIFF | deltavision.DV_DEBUG_PAIRING
        )
        sf2 = deltavision.SubsystemFilter("deltavision")
        self.assertIn(deltavision.DV_SUBSYSTEM_DIFF, sf2.enabled_subsystems)
        self.assertIn(deltavision.DV_SUBSYSTEM_PAIRING, sf2.enabled_subsystems)
        self.assertNotIn(deltavision.DV_SUBSYSTEM_SEARCH, sf2.enabled_subsystems)

    def test_SubsystemFilter_filter(self):
        sf = deltavision.SubsystemFilter("deltavision")
        sf.set_debug_subsystems([deltavision.DV_SUBSYSTEM_READER])

        def make_record(level, subsystem=None):
            record = logging.LogRecord(
                "deltavision.compare", level, __file__, 1, "msg", None, None
            )
            if subsystem:
                record.subsystem = subsystem
            return record

        self.assertTrue(sf.filter(make_record(logging.INFO, "deltavision.search")))
        self.assertTrue(sf.filter(make_record(logging.DEBUG)))
        self.assertTrue(
            sf.filter(make_record(logging.DEBUG, deltavision.DV_SUBSYSTEM_READER))
        )
        self.assertFalse(
            sf.filter(make_record(logging.DEBUG, deltavision.DV_SUBSYSTEM_SEARCH))
        )

    def test_size_fmt(self):
        self.assertEqual(deltavision.size_fmt(0), "0B")
        self.assertEqual(deltavision.size_fmt(1536), "1.5KiB")
        self.assertEqual(deltavision.size_fmt(10 * 2**20), "10.0MiB")

    def test_max_file_size(self):
        self.assertEqual(deltavision.MAX_FILE_SIZE, 10485760)

    def test_TooLargeError(self):
        err = deltavision.DeltaVisionTooLargeError("/a/b.txt", 11000000)
        self.assertEqual(err.limit, deltavision.MAX_FILE_SIZE)
        self.assertIn("/a/b.txt", str(err))
        self.assertIn("11000000 bytes", str(err))
        self.assertIsInstance(err, deltavision.DeltaVisionError)

    def test_BinaryError(self):
        err = deltavision.DeltaVisionBinaryError("/a/b.png")
        self.assertEqual(str(err), "Binary files are not supported: /a/b.png")
        self.assertEqual(err.path, "/a/b.png")

    def test_version(self):
        self.assertTrue(deltavision.__version__)
