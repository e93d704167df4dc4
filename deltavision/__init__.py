# Copyright DeltaVision Developers
#
# deltavision/__init__.py - DeltaVision package initialisation
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
DeltaVision top-level package.
"""
from ._deltavision import *  # noqa: F401, F403
from ._deltavision import __all__  # noqa: F401

__version__ = "0.9.0"
