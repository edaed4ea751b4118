"""CLI parser for launching an application inside its image."""

from __future__ import annotations

import argparse

from dockercap.commands.common import (
    add_app_args_argument,
    add_jar_argument,
    app_args,
    create_strategy,
    open_launcher,
)
from dockercap.config import Settings
from dockercap.core import logging
from dockercap.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "run",
        help="Build the image when stale, then run the application in a container",
    )
    add_jar_argument(parser)
    add_app_args_argument(parser)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner, settings: Settings) -> int:
    launcher = open_launcher(args, settings)
    strategy = create_strategy(launcher, settings, runner)
    command = strategy.prelaunch(app_args(args))
    if command is None:
        logging.info("Build-only mode is active; not starting a container.")
        return 0
    result = runner.run(command, check=False)
    return result.returncode
