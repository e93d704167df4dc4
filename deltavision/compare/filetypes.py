# Copyright DeltaVision Developers
#
# deltavision/compare/filetypes.py - DeltaVision file types
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information support.

Whether a file may be read as text is decided by extension alone using the
fixed ``BINARY_EXTENSIONS`` denylist: no content sniffing takes place. A
text file with a binary-looking extension is rejected and a binary file
with a text extension is read (and may diff as garbage). The richer
``FileTypeDetector`` only describes files for display.
"""
from typing import ClassVar, Dict, Tuple, Union
from pathlib import Path
from enum import Enum
import logging

from deltavision import DV_SUBSYSTEM_READER, DeltaVisionSystemError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_reader(msg, *args, **kwargs):
    """A wrapper for reader subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_READER}, **kwargs)


# fmt: off
#: Extensions (lower case, without the dot) that are never read as text.
BINARY_EXTENSIONS = frozenset(
    (
        # Executables & libraries
        "exe", "dll", "so", "dylib", "bin", "obj",
        # Images
        "jpg", "jpeg", "png", "gif", "bmp", "ico",
        # Audio & video
        "mp3", "mp4", "avi", "mov", "wmv", "flv",
        # Archives
        "zip", "tar", "gz", "rar", "7z",
        # Office documents
        "pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx",
    )
)
# fmt: on


def file_extension(file_path: Union[str, Path]) -> str:
    """
    Return the lower case extension of ``file_path`` without the leading
    dot, or the empty string if it has none.

    :param file_path: The path to inspect.
    :type file_path: ``Union[str, Path]``
    :returns: The extension.
    :rtype: ``str``
    """
    return Path(file_path).suffix[1:].lower()


def is_binary_path(file_path: Union[str, Path]) -> bool:
    """
    Return ``True`` if ``file_path`` has an extension on the binary
    denylist.

    :param file_path: The path to check.
    :type file_path: ``Union[str, Path]``
    :returns: ``True`` if the file is treated as binary.
    :rtype: ``bool``
    """
    return file_extension(file_path) in BINARY_EXTENSIONS


# Mappings for common extensions used to describe files.
# Format: ".ext": ("mime/type", "description starting with lowercase")
EXTENSION_MAP = {
    # Text & documentation
    ".txt": ("text/plain", "plain text document"),
    ".text": ("text/plain", "plain text document"),
    ".md": ("text/markdown", "markdown documentation"),
    ".markdown": ("text/markdown", "markdown documentation"),
    ".rst": ("text/x-rst", "reStructuredText document"),
    ".adoc": ("text/asciidoc", "asciidoc document"),
    ".tex": ("text/x-tex", "latex source document"),
    ".rtf": ("text/rtf", "rich text format document"),
    ".log": ("text/x-log", "log file"),
    # Data & configuration
    ".json": ("application/json", "json data file"),
    ".jsonl": ("application/x-jsonlines", "json lines data file"),
    ".xml": ("application/xml", "xml document"),
    ".yaml": ("application/yaml", "yaml configuration file"),
    ".yml": ("application/yaml", "yaml configuration file"),
    ".toml": ("application/toml", "toml configuration file"),
    ".ini": ("text/x-ini", "ini configuration file"),
    ".cfg": ("text/x-config", "configuration file"),
    ".conf": ("text/x-config", "configuration file"),
    ".csv": ("text/csv", "comma-separated values"),
    ".tsv": ("text/tab-separated-values", "tab-separated values"),
    # Web & source code
    ".html": ("text/html", "html document"),
    ".htm": ("text/html", "html document"),
    ".css": ("text/css", "cascading style sheet"),
    ".js": ("text/javascript", "javascript source code"),
    ".ts": ("application/typescript", "typescript source code"),
    ".py": ("text/x-python", "python source code"),
    ".sh": ("application/x-sh", "shell script"),
    ".c": ("text/x-c", "c source code"),
    ".h": ("text/x-c", "c header file"),
    ".java": ("text/x-java-source", "java source code"),
    ".sql": ("application/sql", "sql script"),
    ".diff": ("text/x-diff", "unified diff"),
    ".patch": ("text/x-diff", "unified diff"),
    # Binary: executables & libraries
    ".exe": ("application/vnd.microsoft.portable-executable", "windows executable file"),
    ".dll": ("application/vnd.microsoft.portable-executable", "windows dynamic link library"),
    ".so": ("application/x-sharedlib", "shared library"),
    ".dylib": ("application/x-mach-binary", "mach-o dynamic library"),
    ".bin": ("application/octet-stream", "binary data"),
    ".obj": ("application/x-object", "object file"),
    # Binary: images
    ".jpg": ("image/jpeg", "jpeg image"),
    ".jpeg": ("image/jpeg", "jpeg image"),
    ".png": ("image/png", "png image"),
    ".gif": ("image/gif", "gif image"),
    ".bmp": ("image/bmp", "bitmap image"),
    ".ico": ("image/vnd.microsoft.icon", "windows icon"),
    # Binary: audio & video
    ".mp3": ("audio/mpeg", "mp3 audio"),
    ".mp4": ("video/mp4", "mp4 video"),
    ".avi": ("video/x-msvideo", "avi video"),
    ".mov": ("video/quicktime", "quicktime video"),
    ".wmv": ("video/x-ms-wmv", "windows media video"),
    ".flv": ("video/x-flv", "flash video"),
    # Binary: archives
    ".zip": ("application/zip", "zip archive"),
    ".tar": ("application/x-tar", "tar archive"),
    ".gz": ("application/gzip", "gzip compressed data"),
    ".rar": ("application/x-rar", "rar archive"),
    ".7z": ("application/x-7z-compressed", "7-zip archive"),
    # Binary: documents
    ".pdf": ("application/pdf", "pdf document"),
    ".doc": ("application/msword", "word document"),
    ".docx": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "word document",
    ),
    ".xls": ("application/vnd.ms-excel", "excel spreadsheet"),
    ".xlsx": (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "excel spreadsheet",
    ),
    ".ppt": ("application/vnd.ms-powerpoint", "powerpoint presentation"),
    ".pptx": (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "powerpoint presentation",
    ),
}


def _guess_file(file_path: Path) -> Tuple[str, str]:
    """
    Guess a file's MIME type and description from its extension.

    :param file_path: A ``Path`` instance containing the file path to check.
    :type file_path: ``Path``
    :returns: A 2-tuple containing (mime_type, description).
    :rtype: ``Tuple[str, str]``
    """
    extension = file_path.suffix.lower()
    if extension in EXTENSION_MAP:
        return EXTENSION_MAP[extension]
    if is_binary_path(file_path):
        return ("application/octet-stream", "binary data")
    return ("text/plain", "text file")


class FileTypeCategory(Enum):
    """
    Enum for file type categories.
    """

    TEXT = "text"
    BINARY = "binary"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    EXECUTABLE = "executable"
    CONFIG = "config"
    LOG = "log"
    DOCUMENT = "document"
    SOURCE_CODE = "source_code"
    UNKNOWN = "unknown"


class FileTypeInfo:
    """
    Describes the type of one file for display in ``FileMeta``.
    """

    def __init__(self, mime_type: str, description: str, category: FileTypeCategory):
        self.mime_type = mime_type
        self.description = description
        self.category = category


class FileTypeDetector:
    """
    Describe file types from their extension, or optionally using ``magic``
    from python3-file-magic.
    """

    # fmt: off
    category_rules: ClassVar[Dict[str, FileTypeCategory]] = {
        # --- Archives & Compression ---
        "application/zip": FileTypeCategory.ARCHIVE,
        "application/x-tar": FileTypeCategory.ARCHIVE,
        "application/gzip": FileTypeCategory.ARCHIVE,
        "application/x-gzip": FileTypeCategory.ARCHIVE,
        "application/x-rar": FileTypeCategory.ARCHIVE,
        "application/x-7z-compressed": FileTypeCategory.ARCHIVE,
        # --- Executables & Libraries ---
        "application/x-executable": FileTypeCategory.EXECUTABLE,
        "application/x-sharedlib": FileTypeCategory.EXECUTABLE,
        "application/x-pie-executable": FileTypeCategory.EXECUTABLE,
        "application/x-mach-binary": FileTypeCategory.EXECUTABLE,
        "application/x-dosexec": FileTypeCategory.EXECUTABLE,
        "application/vnd.microsoft.portable-executable": FileTypeCategory.EXECUTABLE,
        "application/x-object": FileTypeCategory.EXECUTABLE,
        # --- Documents ---
        "application/pdf": FileTypeCategory.DOCUMENT,
        "application/msword": FileTypeCategory.DOCUMENT,
        "application/vnd.ms-excel": FileTypeCategory.DOCUMENT,
        "application/vnd.ms-powerpoint": FileTypeCategory.DOCUMENT,
        "application/vnd.openxmlformats-officedocument": FileTypeCategory.DOCUMENT,
        "text/rtf": FileTypeCategory.DOCUMENT,
        "text/markdown": FileTypeCategory.DOCUMENT,
        "text/asciidoc": FileTypeCategory.DOCUMENT,
        "text/x-rst": FileTypeCategory.DOCUMENT,
        "text/x-tex": FileTypeCategory.DOCUMENT,
        # --- Configuration & Data Serialization ---
        "application/json": FileTypeCategory.CONFIG,
        "application/x-jsonlines": FileTypeCategory.CONFIG,
        "application/xml": FileTypeCategory.CONFIG,
        "text/xml": FileTypeCategory.CONFIG,
        "application/yaml": FileTypeCategory.CONFIG,
        "application/toml": FileTypeCategory.CONFIG,
        "text/x-ini": FileTypeCategory.CONFIG,
        "text/x-config": FileTypeCategory.CONFIG,
        # --- Logs ---
        "text/x-log": FileTypeCategory.LOG,
        # --- Source Code ---
        "application/javascript": FileTypeCategory.SOURCE_CODE,
        "application/typescript": FileTypeCategory.SOURCE_CODE,
        "application/x-sh": FileTypeCategory.SOURCE_CODE,
        "application/sql": FileTypeCategory.SOURCE_CODE,
        "text/javascript": FileTypeCategory.SOURCE_CODE,
        "text/x-python": FileTypeCategory.SOURCE_CODE,
        "text/x-shellscript": FileTypeCategory.SOURCE_CODE,
        "text/x-c": FileTypeCategory.SOURCE_CODE,
        "text/x-java-source": FileTypeCategory.SOURCE_CODE,
        "text/html": FileTypeCategory.SOURCE_CODE,
        "text/css": FileTypeCategory.SOURCE_CODE,
        "text/x-diff": FileTypeCategory.SOURCE_CODE,
        # --- Generic Prefixes (Fallbacks) ---
        "text/": FileTypeCategory.TEXT,
        "image/": FileTypeCategory.IMAGE,
        "audio/": FileTypeCategory.AUDIO,
        "video/": FileTypeCategory.VIDEO,
        "inode/x-empty": FileTypeCategory.TEXT,
    }
    # fmt: on

    def detect_file_type(self, file_path: Path, use_magic=False) -> FileTypeInfo:
        """
        Describe ``file_path``, optionally using python3-file-magic for MIME
        type detection.

        :param file_path: The path to the file to inspect.
        :type file_path: ``Path``.
        :param use_magic: Inspect file content with libmagic.
        :type use_magic: ``bool``
        :returns: File type information for ``file_path``.
        :rtype: ``FileTypeInfo``
        :raises: ``DeltaVisionSystemError`` if ``use_magic`` is set and the
                 ``magic`` module cannot be imported.
        """
        file_path = Path(file_path)
        if not use_magic:
            return self._guess_file_type(file_path)

        try:
            # libmagic is only loaded when content detection is requested.
            import magic  # pylint: disable=import-outside-toplevel
        except ImportError as err:
            raise DeltaVisionSystemError(
                f"File type detection with libmagic is unavailable: {err}"
            ) from err

        # c9s magic does not have magic.error
        if hasattr(magic, "error"):
            magic_errors = (magic.error, OSError, ValueError)
        else:
            magic_errors = (OSError, ValueError)

        try:
            fm = magic.detect_from_filename(str(file_path))
            mime_type = fm.mime_type
            category = self._categorize_file(mime_type, file_path)
            return FileTypeInfo(mime_type, fm.name, category)
        except magic_errors as err:
            _log_warn("Error detecting file type for %s: %s", str(file_path), err)
            return FileTypeInfo(
                "application/octet-stream", "unknown", FileTypeCategory.UNKNOWN
            )

    def _categorize_file(self, mime_type: str, file_path: Path) -> FileTypeCategory:
        """
        Categorize file based on MIME type and file name.

        :param mime_type: Detected file MIME type.
        :type mime_type: ``str``
        :param file_path: Path to the file to categorize.
        :type file_path: ``Path``
        :returns: File type categorization.
        :rtype: ``FileTypeCategory``
        """
        mime_type = mime_type.lower()
        path_str = str(file_path).lower()
        if path_str.endswith(".log"):
            return FileTypeCategory.LOG
        if path_str.endswith(".conf"):
            return FileTypeCategory.CONFIG

        for pattern, category in self.category_rules.items():
            if mime_type.startswith(pattern):
                return category

        return FileTypeCategory.BINARY

    def _guess_file_type(self, file_path: Path) -> FileTypeInfo:
        """
        Guess file type based on extension without using python3-file-magic.

        :param file_path: The path to guess file type for.
        :type file_path: ``Path``
        :returns: A ``FileTypeInfo`` object with a best-effort guess of the
                  file type.
        :rtype: ``FileTypeInfo``
        """
        mime_type, description = _guess_file(file_path)
        category = self._categorize_file(mime_type, file_path)
        _log_debug_reader("Guessed type of %s: %s", file_path, mime_type)
        return FileTypeInfo(mime_type, description, category)
