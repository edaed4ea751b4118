#!/usr/bin/env python3
"""Build capsule JARs into container images and launch them."""

from __future__ import annotations

import argparse
import logging as std_logging
from pathlib import Path

from dockercap.commands import build, dockerfile, native, run
from dockercap.config import load_settings
from dockercap.core import logging
from dockercap.core.errors import DockerCapError
from dockercap.core.runner import CommandRunner, RunnerError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockercap",
        description="Package a capsule JAR into a container image and launch it",
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to dockercap.yml (default: ./dockercap.yml)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print docker commands without executing them",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", required=True)
    build.register_parser(subparsers)
    run.register_parser(subparsers)
    native.register_parser(subparsers)
    dockerfile.register_parser(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.set_verbose(bool(args.verbose))
    std_logging.basicConfig(
        level=std_logging.DEBUG if args.verbose else std_logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    try:
        settings = load_settings(
            Path(args.config) if args.config else None,
            verbose=bool(args.verbose),
            dry_run=bool(args.dry_run),
        )
        runner = CommandRunner(dry_run=bool(args.dry_run))
        return int(args.func(args, runner, settings))
    except (DockerCapError, RunnerError) as exc:
        logging.error(f"Error: {exc}")
        return 1
    except (ValueError, FileNotFoundError) as exc:
        logging.error(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
