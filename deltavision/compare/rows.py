# Copyright DeltaVision Developers
#
# deltavision/compare/rows.py - DeltaVision diff row reconciliation
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Convert a line diff into aligned two-column rows.

Every row carries one line number that is shared by both columns: the
counter advances once per row whether the row holds an old line, a new line
or both. A removed part that is immediately followed by an added part forms
a modify block whose lines are paired index by index.
"""
from typing import Any, Dict, List, Optional, Sequence, Union
from enum import Enum
import logging

from deltavision import DV_SUBSYSTEM_DIFF

from .contentdiff import DiffPart, diff_words
from .difftypes import RowType
from .options import DiffMode

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_DIFF}, **kwargs)


class RowSide:
    """
    One column of a reconciled row.
    """

    def __init__(
        self,
        number: int,
        content: str,
        row_type: RowType,
        word_diff: Optional[List[DiffPart]] = None,
    ):
        """
        Initialise a new ``RowSide``.

        :param number: The shared line number of the row.
        :type number: ``int``
        :param content: The line content without its newline.
        :type content: ``str``
        :param row_type: The type of this side; ``RowType.EMPTY`` when the
                         side has no content for the row.
        :type row_type: ``RowType``
        :param word_diff: Word level diff of a modified line.
        :type word_diff: ``Optional[List[DiffPart]]``
        """
        self.number = number
        self.content = content
        self.type = row_type
        self.word_diff = word_diff

    @property
    def is_empty(self) -> bool:
        """``True`` if this side holds no line."""
        return self.type == RowType.EMPTY

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``RowSide`` into a dictionary suitable for encoding as
        JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        out = {
            "number": self.number,
            "content": self.content,
            "type": self.type.value,
        }
        if self.word_diff is not None:
            out["word_diff"] = [part.to_dict() for part in self.word_diff]
        return out

    @classmethod
    def empty(cls, number: int) -> "RowSide":
        """Return a side with no content for row ``number``."""
        return cls(number, "", RowType.EMPTY)


class Row:
    """
    A renderable row pairing an old line with a new line.
    """

    def __init__(self, row_id: str, line_number: int, row_type: RowType, left: RowSide, right: RowSide):
        self.id = row_id
        self.line_number = line_number
        self.type = row_type
        self.left = left
        self.right = right

    def __str__(self):
        """
        Return a one line, side by side representation of this row.

        :returns: A human readable string.
        :rtype: ``str``
        """
        markers = {
            RowType.ADDED: "+",
            RowType.REMOVED: "-",
            RowType.MODIFIED: "~",
            RowType.UNCHANGED: " ",
        }
        return (
            f"{self.line_number:>5} {markers[self.type]} "
            f"{self.left.content} | {self.right.content}"
        )

    def __repr__(self):
        return (
            f"Row({self.id!r}, {self.line_number}, {self.type}, "
            f"{self.left.content!r}, {self.right.content!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Row`` into a dictionary suitable for encoding as
        JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "id": self.id,
            "line_number": self.line_number,
            "type": self.type.value,
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
        }


def split_part_lines(value: str) -> List[str]:
    """
    Split a diff part's value into lines without their newlines.

    One trailing empty string produced by a trailing newline is dropped, so
    ``"a\\n"`` gives ``["a"]``, ``"\\n"`` gives ``[""]`` (one empty line)
    and ``""`` gives ``[]``.

    :param value: The part value to split.
    :type value: ``str``
    :returns: The lines of ``value``.
    :rtype: ``List[str]``
    """
    lines = value.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class ReconcileState(Enum):
    """
    States of the row reconciler while it walks the diff parts.
    """

    SCANNING = "scanning"
    CONSUMING_MODIFY_BLOCK = "consuming-modify-block"


class RowReconciler:
    """
    Single pass conversion of line diff parts into ``Row`` objects.

    Each call to ``reconcile()`` starts from line 1 and ``row-0`` so the
    same input always yields identical rows.
    """

    def __init__(self, mode: Union[DiffMode, str] = DiffMode.LINE):
        """
        Initialise a new ``RowReconciler``.

        :param mode: ``DiffMode.WORD`` attaches word diffs to modified rows.
        :type mode: ``Union[DiffMode, str]``
        """
        self.mode = DiffMode.from_value(mode)
        self.state = ReconcileState.SCANNING
        self._rows: List[Row] = []
        self._line_number = 1
        self._row_id = 0

    def _reset(self):
        self.state = ReconcileState.SCANNING
        self._rows = []
        self._line_number = 1
        self._row_id = 0

    def _next_id(self) -> str:
        row_id = f"row-{self._row_id}"
        self._row_id += 1
        return row_id

    def _emit(self, line_number: int, row_type: RowType, left: RowSide, right: RowSide):
        self._rows.append(Row(self._next_id(), line_number, row_type, left, right))

    def _emit_added(self, number: int, content: str):
        self._emit(
            number,
            RowType.ADDED,
            RowSide.empty(number),
            RowSide(number, content, RowType.ADDED),
        )

    def _emit_removed(self, number: int, content: str):
        self._emit(
            number,
            RowType.REMOVED,
            RowSide(number, content, RowType.REMOVED),
            RowSide.empty(number),
        )

    def _emit_unchanged(self, number: int, content: str):
        self._emit(
            number,
            RowType.UNCHANGED,
            RowSide(number, content, RowType.UNCHANGED),
            RowSide(number, content, RowType.UNCHANGED),
        )

    def _emit_modified(self, number: int, old_content: str, new_content: str):
        word_diff = None
        if self.mode == DiffMode.WORD:
            # Both sides share one word diff list.
            word_diff = diff_words(old_content, new_content)
        self._emit(
            number,
            RowType.MODIFIED,
            RowSide(number, old_content, RowType.MODIFIED, word_diff),
            RowSide(number, new_content, RowType.MODIFIED, word_diff),
        )

    def _consume_single(self, part: DiffPart) -> int:
        """
        Emit one row per line of a part that is not part of a modify block.

        :returns: The number of parts consumed (always 1).
        """
        if part.added:
            emit = self._emit_added
        elif part.removed:
            emit = self._emit_removed
        else:
            emit = self._emit_unchanged

        for content in split_part_lines(part.value):
            emit(self._line_number, content)
            self._line_number += 1
        return 1

    def _consume_modify_block(self, removed: DiffPart, added: DiffPart) -> int:
        """
        Pair the lines of a removed part with those of the added part that
        follows it.

        :returns: The number of parts consumed (always 2).
        """
        old_lines = split_part_lines(removed.value)
        new_lines = split_part_lines(added.value)
        block_lines = max(len(old_lines), len(new_lines))
        base = self._line_number

        for index in range(block_lines):
            number = base + index
            has_old = index < len(old_lines)
            has_new = index < len(new_lines)
            if has_old and has_new:
                self._emit_modified(number, old_lines[index], new_lines[index])
            elif has_old:
                self._emit_removed(number, old_lines[index])
            else:
                self._emit_added(number, new_lines[index])

        self._line_number = base + block_lines
        return 2

    def _step(self, parts: Sequence[DiffPart], index: int) -> int:
        """
        Process the part at ``index`` and return how many parts were
        consumed.
        """
        part = parts[index]
        following = parts[index + 1] if index + 1 < len(parts) else None

        if part.removed and following is not None and following.added:
            self.state = ReconcileState.CONSUMING_MODIFY_BLOCK
            consumed = self._consume_modify_block(part, following)
        else:
            self.state = ReconcileState.SCANNING
            consumed = self._consume_single(part)

        self.state = ReconcileState.SCANNING
        return consumed

    def reconcile(self, parts: Sequence[DiffPart]) -> List[Row]:
        """
        Convert ``parts`` into rows.

        :param parts: Line diff parts as returned by ``diff_lines()``.
        :type parts: ``Sequence[DiffPart]``
        :returns: The reconciled rows.
        :rtype: ``List[Row]``
        """
        self._reset()
        index = 0
        while index < len(parts):
            index += self._step(parts, index)

        rows = self._rows
        self._rows = []
        _log_debug_diff(
            "Reconciled %d parts into %d rows (mode=%s)",
            len(parts),
            len(rows),
            self.mode.value,
        )
        return rows


def reconcile(parts: Sequence[DiffPart], mode: Union[DiffMode, str] = DiffMode.LINE) -> List[Row]:
    """
    Convert line diff ``parts`` into aligned rows.

    :param parts: Line diff parts as returned by ``diff_lines()``.
    :type parts: ``Sequence[DiffPart]``
    :param mode: ``"line"`` or ``"word"``; word mode attaches a word diff
                 to each modified row.
    :type mode: ``Union[DiffMode, str]``
    :returns: The reconciled rows.
    :rtype: ``List[Row]``
    """
    return RowReconciler(mode).reconcile(parts)
