# Copyright DeltaVision Developers
#
# deltavision/compare/contentdiff.py - DeltaVision line and word diffs
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Line and word level diff primitives.

Both functions return an ordered list of ``DiffPart`` objects covering the
whole of the old and new input: unchanged runs appear once, runs only in the
old input are ``removed`` and runs only in the new input are ``added``. When
a run is replaced the ``removed`` part always precedes the ``added`` part.
Concatenating the values of all parts that are not ``added`` reproduces the
old input, and likewise for parts that are not ``removed`` and the new input.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
import difflib
import logging
import re

from deltavision import DV_SUBSYSTEM_DIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_diff(msg, *args, **kwargs):
    """A wrapper for diff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_DIFF}, **kwargs)


#: A line including its terminating newline, or a final unterminated line.
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")

_WORD_SPECIALS = "()\\[\\]{}'\""

#: Whitespace runs, single bracket or quote characters, word runs and runs of
#: other punctuation.
_WORD_RE = re.compile(
    rf"\s+|[{_WORD_SPECIALS}]|\w+|[^\w\s{_WORD_SPECIALS}]+"
)


@dataclass
class DiffPart:
    """
    A run of unchanged, added or removed text in a diff.
    """

    #: The text covered by this part
    value: str
    #: The text only appears in the new input
    added: bool = False
    #: The text only appears in the old input
    removed: bool = False
    #: The number of tokens (lines or words) in this part
    count: int = 0

    @property
    def unchanged(self) -> bool:
        """``True`` if this part appears in both inputs."""
        return not (self.added or self.removed)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffPart`` into a dictionary suitable for encoding
        as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "value": self.value,
            "added": self.added,
            "removed": self.removed,
            "count": self.count,
        }


def _append_part(parts: List[DiffPart], tokens: Sequence[str], added=False, removed=False):
    """
    Append a part for ``tokens`` to ``parts``, merging it into the previous
    part if that has the same kind.
    """
    if not tokens:
        return
    value = "".join(tokens)
    if parts and parts[-1].added == added and parts[-1].removed == removed:
        parts[-1].value += value
        parts[-1].count += len(tokens)
        return
    parts.append(DiffPart(value, added=added, removed=removed, count=len(tokens)))


def _diff_tokens(old_tokens: List[str], new_tokens: List[str]) -> List[DiffPart]:
    """
    Diff two token sequences into ``DiffPart`` runs.

    :param old_tokens: The original tokens.
    :param new_tokens: The updated tokens.
    :returns: The diff parts.
    :rtype: ``List[DiffPart]``
    """
    parts: List[DiffPart] = []
    matcher = difflib.SequenceMatcher(None, old_tokens, new_tokens, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append_part(parts, old_tokens[i1:i2])
        elif tag == "delete":
            _append_part(parts, old_tokens[i1:i2], removed=True)
        elif tag == "insert":
            _append_part(parts, new_tokens[j1:j2], added=True)
        else:  # replace
            _append_part(parts, old_tokens[i1:i2], removed=True)
            _append_part(parts, new_tokens[j1:j2], added=True)
    return parts


def split_lines(text: str) -> List[str]:
    """
    Split ``text`` into lines, keeping each line's terminating newline.

    Only ``"\\n"`` terminates a line: a ``"\\r"`` stays part of the line
    content.

    :param text: The text to split.
    :type text: ``str``
    :returns: The lines of ``text``.
    :rtype: ``List[str]``
    """
    return _LINE_RE.findall(text)


def split_words(text: str) -> List[str]:
    """
    Split ``text`` into word, whitespace and punctuation tokens.

    :param text: The text to split.
    :type text: ``str``
    :returns: The tokens of ``text``; joining them reproduces ``text``.
    :rtype: ``List[str]``
    """
    return _WORD_RE.findall(text)


def diff_lines(old_text: str, new_text: str) -> List[DiffPart]:
    """
    Compute a line level diff of ``old_text`` and ``new_text``.

    A final line without a trailing newline differs from the same line
    with one. Two empty inputs give an empty list.

    :param old_text: The original text.
    :type old_text: ``str``
    :param new_text: The updated text.
    :type new_text: ``str``
    :returns: The diff parts.
    :rtype: ``List[DiffPart]``
    """
    old_lines = split_lines(old_text or "")
    new_lines = split_lines(new_text or "")
    parts = _diff_tokens(old_lines, new_lines)
    _log_debug_diff(
        "Line diff of %d/%d lines produced %d parts",
        len(old_lines),
        len(new_lines),
        len(parts),
    )
    return parts


def diff_words(old_line: str, new_line: str) -> List[DiffPart]:
    """
    Compute a word level diff of ``old_line`` and ``new_line``, treating
    whitespace runs as significant tokens.

    :param old_line: The original line.
    :type old_line: ``str``
    :param new_line: The updated line.
    :type new_line: ``str``
    :returns: The diff parts.
    :rtype: ``List[DiffPart]``
    """
    return _diff_tokens(split_words(old_line or ""), split_words(new_line or ""))
