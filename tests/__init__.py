# Copyright DeltaVision Developers
#
# tests/__init__.py - DeltaVision test package
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
import logging
import os
import time

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)

os.environ["TZ"] = "UTC"
time.tzset()


class MockArgs(object):
    debug = None
    verbose = 0
    version = False
    config = None
    json = False
    pretty = False
    diff_mode = None
    use_magic_file_type = None
    old = None
    new = None
    old_dir = None
    new_dir = None
    pairs_only = False
    summary = False
    directory = None
    term = None
    search_names = None
    search_content = None
    case_sensitive = None
    file_types = None
    max_results = None
    path = None


def have_root():
    """Return ``True`` if the test suite is running as the root user,
    and ``False`` otherwise.
    """
    return os.geteuid() == 0 and os.getegid() == 0
