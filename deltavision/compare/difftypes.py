# Copyright DeltaVision Developers
#
# deltavision/compare/difftypes.py - DeltaVision diff row types
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Diff row types
"""
from enum import Enum


class RowType(Enum):
    """
    Enum for the classification of a reconciled row or one side of it.
    """

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    EMPTY = "empty"
