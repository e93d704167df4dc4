# Copyright DeltaVision Developers
#
# deltavision/command.py - DeltaVision command interface
#
# This file is part of the deltavision project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``deltavision.command`` module provides both the deltavision command
line interface infrastructure, and a simple procedural interface to the
``deltavision.compare`` package.

The procedural interface is used by the ``deltavision`` command line tool,
and may be used by application programs, or interactively in the Python
shell by users who do not require the full comparison object API.
"""
from argparse import ArgumentParser
from typing import List
from os.path import basename
from json import dumps
import logging
import sys

from deltavision import (
    DeltaVisionError,
    DV_DEBUG_READER,
    DV_DEBUG_PAIRING,
    DV_DEBUG_DIFF,
    DV_DEBUG_SEARCH,
    DV_DEBUG_COMMAND,
    DV_DEBUG_ALL,
    DV_SUBSYSTEM_COMMAND,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from .compare import (
    CompareOptions,
    CompareResult,
    ComparisonPair,
    DiffMode,
    SearchOptions,
    SearchResults,
    compare_directories,
    compare_files,
    pair_directories,
    read_content,
    search_files,
)
from .config import DV_CONFIG_FILE, DeltaVisionConfig

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DV_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

#: Diff modes accepted by ``--mode``
DIFF_MODES = [mode.value for mode in DiffMode]


def print_comparison(result: CompareResult, json=False, pretty=False):
    """
    Print the result of a file comparison.

    :param result: The comparison to print.
    :type result: ``CompareResult``
    :param json: Display output in JSON notation.
    :param pretty: Indent JSON output.
    """
    if json:
        print(result.json(pretty=pretty))
    else:
        print(result)


def print_pairs(pairs: List[ComparisonPair], json=False, pretty=False, rows=True):
    """
    Print directory comparison pairs and, when present, their comparisons.

    :param pairs: The pairs to print.
    :type pairs: ``List[ComparisonPair]``
    :param json: Display output in JSON notation.
    :param pretty: Indent JSON output.
    :param rows: Print the comparison rows of each pair.
    """
    if json:
        print(dumps([pair.to_dict() for pair in pairs], indent=4 if pretty else None))
        return

    spacer = ""
    for pair in pairs:
        print(spacer, end="")
        print(pair)
        if pair.comparison is not None:
            if rows:
                print(pair.comparison)
            else:
                print(pair.comparison.summary)
        spacer = "\n" if rows else ""


def print_search_results(results: SearchResults, json=False, pretty=False):
    """
    Print the results of a file search.

    :param results: The search results to print.
    :type results: ``SearchResults``
    :param json: Display output in JSON notation.
    :param pretty: Indent JSON output.
    """
    if json:
        print(results.json(pretty=pretty))
    else:
        print(results)


def _load_config(cmd_args) -> DeltaVisionConfig:
    """
    Load the configuration file named by ``--config`` or the default.
    """
    config_file = getattr(cmd_args, "config", None) or DV_CONFIG_FILE
    return DeltaVisionConfig.from_file(config_file)


def _compare_opts_from_args(cmd_args) -> CompareOptions:
    config = _load_config(cmd_args)
    return CompareOptions.from_cmd_args(cmd_args, defaults=config.compare)


def _compare_cmd(cmd_args):
    """
    Compare files command handler.

    Compare an old file with a new file. Either may be omitted to show a
    file as wholly added or removed.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    if not cmd_args.old and not cmd_args.new:
        _log_error(
            "deltavision compare: error: at least one of --old or --new is required"
        )
        return 1

    try:
        options = _compare_opts_from_args(cmd_args)
        result = compare_files(cmd_args.old, cmd_args.new, options)
    except DeltaVisionError as err:
        _log_error("Comparison failed: %s", err)
        return 1

    print_comparison(result, json=cmd_args.json, pretty=cmd_args.pretty)
    return 0


def _compare_dirs_cmd(cmd_args):
    """
    Compare directories command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    try:
        if cmd_args.pairs_only:
            pairs = pair_directories(cmd_args.old_dir, cmd_args.new_dir)
        else:
            options = _compare_opts_from_args(cmd_args)
            pairs = compare_directories(cmd_args.old_dir, cmd_args.new_dir, options)
    except DeltaVisionError as err:
        _log_error("Directory comparison failed: %s", err)
        return 1

    _log_debug_command("Found %d comparison pairs", len(pairs))
    print_pairs(
        pairs,
        json=cmd_args.json,
        pretty=cmd_args.pretty,
        rows=not cmd_args.summary,
    )
    return 0


def _search_cmd(cmd_args):
    """
    Search files command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    try:
        config = _load_config(cmd_args)
        options = SearchOptions.from_cmd_args(cmd_args, defaults=config.search)
        results = search_files(cmd_args.directory, cmd_args.term, options)
    except DeltaVisionError as err:
        if cmd_args.json:
            failure = {"success": False, "error": str(err)}
            print(dumps(failure, indent=4 if cmd_args.pretty else None))
        _log_error("Search failed: %s", err)
        return 1

    print_search_results(results, json=cmd_args.json, pretty=cmd_args.pretty)
    return 0


def _cat_cmd(cmd_args):
    """
    Read file command handler.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    try:
        content = read_content(cmd_args.path)
    except DeltaVisionError as err:
        _log_error("Cannot read file: %s", err)
        return 1

    if cmd_args.json:
        print(dumps({"path": cmd_args.path, "content": content}))
    else:
        print(content, end="")
    return 0


def setup_logging(cmd_args):
    """
    Set up deltavision logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    dv_log = logging.getLogger("deltavision")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    dv_log.setLevel(level)
    if dv_log.hasHandlers():
        dv_log.handlers.clear()

    # Subsystem log filtering
    _dv_subsystem_filter = SubsystemFilter("deltavision")

    # Main console handler
    _CONSOLE_HANDLER = logging.StreamHandler(sys.stderr)

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_dv_subsystem_filter)

    dv_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down deltavision logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "reader": DV_DEBUG_READER,
        "pairing": DV_DEBUG_PAIRING,
        "diff": DV_DEBUG_DIFF,
        "search": DV_DEBUG_SEARCH,
        "command": DV_DEBUG_COMMAND,
        "all": DV_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_json_args(parser):
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Display output in JSON notation",
    )
    parser.add_argument(
        "-p",
        "--pretty",
        action="store_true",
        help="Indent JSON output to be human readable",
    )


def _add_compare_args(parser):
    parser.add_argument(
        "--mode",
        dest="diff_mode",
        choices=DIFF_MODES,
        default=None,
        help="Compare by line, or by line with word differences (default: line)",
    )
    parser.add_argument(
        "--magic",
        dest="use_magic_file_type",
        action="store_true",
        default=None,
        help="Describe file types using libmagic",
    )
    _add_json_args(parser)


def _add_search_args(parser):
    parser.add_argument(
        "directory",
        metavar="DIR",
        type=str,
        help="The directory to search",
    )
    parser.add_argument(
        "term",
        metavar="TERM",
        type=str,
        help="The term to search for",
    )
    parser.add_argument(
        "--no-names",
        dest="search_names",
        action="store_false",
        default=None,
        help="Do not match the term against file names",
    )
    parser.add_argument(
        "--no-content",
        dest="search_content",
        action="store_false",
        default=None,
        help="Do not match the term against file content",
    )
    parser.add_argument(
        "-c",
        "--case-sensitive",
        dest="case_sensitive",
        action="store_true",
        default=None,
        help="Match case exactly",
    )
    parser.add_argument(
        "-t",
        "--file-types",
        metavar="EXTS",
        type=str,
        default=None,
        help="A comma separated list of file extensions to search",
    )
    parser.add_argument(
        "-m",
        "--max-results",
        metavar="COUNT",
        type=int,
        default=None,
        help="Stop after COUNT matching files (default: 1000)",
    )
    _add_json_args(parser)


def main(args):
    """
    Main entry point for deltavision.
    """
    parser = ArgumentParser(description="DeltaVision", prog=basename(args[0]))

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of deltavision",
        version=__version__,
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        type=str,
        default=None,
        help=f"Path to the configuration file (default: {DV_CONFIG_FILE})",
    )

    command_subparser = parser.add_subparsers(dest="command", help="Command")

    compare_parser = command_subparser.add_parser(
        "compare", help="Compare an old file with a new file"
    )
    compare_parser.add_argument(
        "--old", metavar="PATH", type=str, default=None, help="The old file"
    )
    compare_parser.add_argument(
        "--new", metavar="PATH", type=str, default=None, help="The new file"
    )
    _add_compare_args(compare_parser)
    compare_parser.set_defaults(func=_compare_cmd)

    compare_dirs_parser = command_subparser.add_parser(
        "compare-dirs", help="Pair and compare the files of two directories"
    )
    compare_dirs_parser.add_argument(
        "old_dir", metavar="OLD", type=str, help="The directory of old files"
    )
    compare_dirs_parser.add_argument(
        "new_dir", metavar="NEW", type=str, help="The directory of new files"
    )
    compare_dirs_parser.add_argument(
        "--pairs-only",
        action="store_true",
        help="List comparison pairs without comparing their content",
    )
    compare_dirs_parser.add_argument(
        "-s",
        "--summary",
        action="store_true",
        help="Show a change summary for each pair instead of its rows",
    )
    _add_compare_args(compare_dirs_parser)
    compare_dirs_parser.set_defaults(func=_compare_dirs_cmd)

    search_parser = command_subparser.add_parser(
        "search", help="Search file names and content below a directory"
    )
    _add_search_args(search_parser)
    search_parser.set_defaults(func=_search_cmd)

    cat_parser = command_subparser.add_parser("cat", help="Print a text file")
    cat_parser.add_argument("path", metavar="PATH", type=str, help="The file to read")
    cat_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Display output in JSON notation",
    )
    cat_parser.set_defaults(func=_cat_cmd)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if "func" not in cmd_args:
        parser.print_help()
        return status

    if cmd_args.debug:
        status = cmd_args.func(cmd_args)
    else:
        try:
            status = cmd_args.func(cmd_args)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def run():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
