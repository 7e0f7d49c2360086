"""Command-line entry point — ``ptsim``.

Commands are given as one flat list of tokens, each command followed by
its arguments::

    ptsim np 1 2 pfm sb 1 0 99 lb 1 0 ppt 1 kp 1 pfm

Options:
    --config FILE      read the machine geometry from a JSON file
    --log-level LEVEL  minimum event level kept in the log (default DEBUG)
    -i, --interactive  start the REPL after running any given commands

Options may appear before, between, or after the command tokens.
Running with no commands and without ``-i`` prints usage to stderr and
exits with status 1.
"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from pt_sim import repl
from pt_sim.config import ConfigError, MachineConfig, load_config
from pt_sim.logging import Logger, LogLevel
from pt_sim.machine import Machine
from pt_sim.shell import Shell


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for ``ptsim``."""
    parser = argparse.ArgumentParser(
        prog="ptsim",
        description="Simulate single-level page tables over a tiny physical memory.",
    )
    parser.add_argument("--config", type=Path, help="JSON file with page_size, page_count, max_processes")
    parser.add_argument(
        "--log-level",
        choices=[level.name for level in LogLevel],
        default=LogLevel.DEBUG.name,
        help="minimum level recorded in the event log",
    )
    parser.add_argument("-i", "--interactive", action="store_true", help="start the interactive shell")
    parser.add_argument("commands", nargs="*", help="commands: np, kp, sb, lb, pfm, ppt, log")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run ``ptsim`` and return the process exit status."""
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    if not args.commands and not args.interactive:
        print("usage: ptsim commands", file=sys.stderr)  # noqa: T201
        return 1

    try:
        config = load_config(args.config) if args.config is not None else MachineConfig()
    except ConfigError as e:
        print(f"ptsim: {e}", file=sys.stderr)  # noqa: T201
        return 1

    machine = Machine(config, logger=Logger(min_level=LogLevel[args.log_level]))
    shell = Shell(machine=machine)

    for output in shell.run_tokens(args.commands):
        print(output)  # noqa: T201

    if args.interactive:
        repl.run(shell)
    return 0
