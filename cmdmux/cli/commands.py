from __future__ import annotations

import argparse
import asyncio
import logging
import shlex
import sys

from rich.console import Console

from cmdmux.config import ConfigError, RunConfig, resolve_commands
from cmdmux.engine import Dashboard, Multiplexer, Result, RunInterrupted
from cmdmux.log import configure_logging
from cmdmux.output import dump_result

from .args import build_parser

logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None, *, console: Console | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if console is None:
        console = Console(stderr=True)
    configure_logging(args.log_level, args.log_file, console=console)

    try:
        config = build_config(args)
        result = cmd_multiplex(config, console)

    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except RunInterrupted as exc:
        print(str(exc), file=sys.stderr)
        return 130

    except KeyboardInterrupt:
        print("run aborted: interrupt", file=sys.stderr)
        return 130

    if config.output_format is not None:
        _print_result(result, config.output_format)
    return 0


def build_config(args: argparse.Namespace) -> RunConfig:
    try:
        program = shlex.split(args.program)
    except ValueError as exc:
        raise ConfigError(f"Invalid program {args.program!r}: {exc}") from exc

    config = RunConfig(
        program=program,
        commands=resolve_commands(args.commands, args.files),
        stderr_tail=args.stderr,
        parallelism=args.parallelism,
        output_format=args.stdout,
        experimental=args.experimental,
    )
    config.validate()
    logger.debug("resolved %d command(s)", len(config.commands))
    return config


def cmd_multiplex(config: RunConfig, console: Console) -> Result:
    mux = Multiplexer(
        config.program,
        config.commands,
        stderr_tail=config.stderr_tail,
        parallelism=config.effective_parallelism(),
        renderer=Dashboard(console),
    )
    return asyncio.run(mux.run())


def _print_result(result: Result, fmt: str) -> None:
    sys.stdout.write(dump_result(result, fmt))
    sys.stdout.flush()


def main() -> None:
    sys.exit(run_cli())
