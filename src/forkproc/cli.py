"""Command-line interface for forkproc."""

import argparse
import logging
import os
import sys
from contextlib import ExitStack
from pathlib import Path

from pydantic import ValidationError

from forkproc import __version__
from forkproc.config import ConfigError, load_config
from forkproc.launcher import LauncherError, ProcessLauncher
from forkproc.models import LaunchConfig

log = logging.getLogger("forkproc")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forkproc",
        description="Launch a program in a new session so it outlives this process",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", type=Path, help="Path to a TOML config file")
    parser.add_argument("--uid", type=int, help="User id to run the program as")
    parser.add_argument("--gid", type=int, help="Group id to run the program as")
    parser.add_argument(
        "-C",
        "--cwd",
        dest="working_directory",
        help="Working directory for the program (default: /)",
    )
    parser.add_argument("--stdin", default=os.devnull, help="File to read standard input from")
    parser.add_argument("--stdout", default=os.devnull, help="File to append standard output to")
    parser.add_argument("--stderr", default=os.devnull, help="File to append standard error to")
    parser.add_argument("executable", help="Program to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the program")
    return parser


def resolve_config(args: argparse.Namespace) -> LaunchConfig:
    """Load the config file and apply command-line overrides."""
    config = load_config(args.config)
    overrides = {
        field: value
        for field in ("uid", "gid", "working_directory")
        if (value := getattr(args, field)) is not None
    }
    if not overrides:
        return config
    try:
        return LaunchConfig.model_validate({**config.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigError(f"Invalid command-line option: {e}") from e


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    argv_for_child = [args.executable, *args.args]
    try:
        # The child holds its own copies; ours are closed once it is spawned.
        with ExitStack() as stack:
            stdin = stack.enter_context(open(args.stdin, "rb"))
            stdout = stack.enter_context(open(args.stdout, "ab"))
            stderr = stack.enter_context(open(args.stderr, "ab"))
            launcher = ProcessLauncher.from_config(config, stdin, stdout, stderr)
            launcher.exec(False, args.executable, argv_for_child)
            pid = launcher.pid
            launcher.release()
    except (OSError, LauncherError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log.debug("launched %s as pid %s", args.executable, pid)
    print(pid)
    return 0


def entrypoint() -> None:
    raise SystemExit(main())
