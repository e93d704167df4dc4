# Copyright DeltaVision Developers
#
# deltavision/config.py - DeltaVision configuration file support
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""
INI-style configuration for the deltavision command.
"""
from dataclasses import dataclass, field
from configparser import ConfigParser, Error as ConfigParserError
from os.path import exists, join
import logging

from deltavision import DeltaVisionArgumentError, DeltaVisionSystemError

from .compare.options import CompareOptions, DiffMode, SearchOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Configuration directory
DV_CONFIG_DIR = "/etc/deltavision"

#: Default configuration file
DV_CONFIG_FILE = join(DV_CONFIG_DIR, "deltavision.conf")

_DV_CFG_GLOBAL = "Global"
_DV_CFG_DIFF_MODE = "DiffMode"
_DV_CFG_USE_MAGIC = "UseMagic"

_DV_CFG_SEARCH = "Search"
_DV_CFG_MAX_RESULTS = "MaxResults"
_DV_CFG_CASE_SENSITIVE = "CaseSensitive"
_DV_CFG_FILE_TYPES = "FileTypes"


@dataclass
class DeltaVisionConfig:
    """
    Command configuration: default comparison and search options.
    """

    compare: CompareOptions = field(default_factory=CompareOptions)
    search: SearchOptions = field(default_factory=SearchOptions)

    @classmethod
    def from_file(cls, config_file: str) -> "DeltaVisionConfig":
        """
        Load ``DeltaVisionConfig`` from an INI-style configuration file
        located at ``config_file``. A missing file gives the defaults.

        :param config_file: path to deltavision.conf
        :type config_file: ``str``.
        :returns: A ``DeltaVisionConfig`` instance initialised from
                  ``config_file``.
        :rtype: ``DeltaVisionConfig``
        :raises: ``DeltaVisionSystemError`` if the file cannot be parsed,
                 ``DeltaVisionArgumentError`` for invalid values.
        """
        if not exists(config_file):
            return DeltaVisionConfig()

        _log_debug("Loading configuration from '%s'", config_file)
        cfg = ConfigParser()
        try:
            cfg.read([config_file])
        except ConfigParserError as err:
            raise DeltaVisionSystemError(
                f"Error parsing configuration file '{config_file}': {err}"
            ) from err

        compare_args = {}
        search_args = {}
        try:
            if cfg.has_section(_DV_CFG_GLOBAL):
                section = cfg[_DV_CFG_GLOBAL]
                if section.get(_DV_CFG_DIFF_MODE):
                    compare_args["diff_mode"] = DiffMode.from_value(
                        section[_DV_CFG_DIFF_MODE].strip()
                    )
                if cfg.has_option(_DV_CFG_GLOBAL, _DV_CFG_USE_MAGIC):
                    compare_args["use_magic_file_type"] = section.getboolean(
                        _DV_CFG_USE_MAGIC
                    )

            if cfg.has_section(_DV_CFG_SEARCH):
                section = cfg[_DV_CFG_SEARCH]
                if cfg.has_option(_DV_CFG_SEARCH, _DV_CFG_MAX_RESULTS):
                    search_args["max_results"] = section.getint(_DV_CFG_MAX_RESULTS)
                if cfg.has_option(_DV_CFG_SEARCH, _DV_CFG_CASE_SENSITIVE):
                    search_args["case_sensitive"] = section.getboolean(
                        _DV_CFG_CASE_SENSITIVE
                    )
                if cfg.has_option(_DV_CFG_SEARCH, _DV_CFG_FILE_TYPES):
                    types = section[_DV_CFG_FILE_TYPES]
                    search_args["file_types"] = tuple(
                        ext.strip() for ext in types.split(",") if ext.strip()
                    )
        except ValueError as err:
            raise DeltaVisionArgumentError(
                f"Invalid value in configuration file '{config_file}': {err}"
            ) from err

        return DeltaVisionConfig(
            compare=CompareOptions(**compare_args),
            search=SearchOptions(**search_args),
        )
