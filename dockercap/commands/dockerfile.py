"""CLI parser for previewing the generated Dockerfile."""

from __future__ import annotations

import argparse

from dockercap.commands.common import add_jar_argument, create_strategy, open_launcher
from dockercap.config import Settings
from dockercap.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "dockerfile",
        help="Print the Dockerfile a build would use, without staging or building",
    )
    add_jar_argument(parser)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner, settings: Settings) -> int:
    launcher = open_launcher(args, settings)
    strategy = create_strategy(launcher, settings, runner)
    runner.emit(strategy.render_descriptor().render().rstrip("\n"))
    return 0
