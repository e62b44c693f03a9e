from __future__ import annotations

import argparse

from cmdmux import __version__
from cmdmux.config.types import DEFAULT_PROGRAM, DEFAULT_STDERR_TAIL, OUTPUT_FORMATS


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = _non_negative_int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdmux",
        description="A command multiplexer.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-e",
        "--experimental",
        action="store_true",
        help="Enables experimental features",
    )
    parser.add_argument(
        "--program",
        default=DEFAULT_PROGRAM,
        help="Program used to execute the commands given",
    )
    parser.add_argument(
        "--stderr",
        type=_non_negative_int,
        default=DEFAULT_STDERR_TAIL,
        help="Number of recent stderr lines to display per command",
    )
    parser.add_argument(
        "--stdout",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Print the captured stdout of every command in a structured format (experimental)",
    )
    parser.add_argument(
        "-p",
        "--parallelism",
        type=_positive_int,
        default=None,
        help="Maximum number of processes running at once (experimental)",
    )
    parser.add_argument(
        "-c",
        "--command",
        dest="commands",
        action="append",
        default=[],
        help="A command to be executed, may be repeated",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="files",
        action="append",
        default=[],
        help="A commands file (.json, .yaml/.yml, .toml), may be repeated",
    )

    # logging
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file instead of stderr",
    )

    return parser
