"""CLI parser for building an application image."""

from __future__ import annotations

import argparse

from dockercap.commands.common import add_jar_argument, create_strategy, open_launcher
from dockercap.config import Settings
from dockercap.core import logging
from dockercap.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("build", help="Build the application image without running it")
    add_jar_argument(parser)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Rebuild even if the image is up to date",
    )
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner, settings: Settings) -> int:
    launcher = open_launcher(args, settings)
    strategy = create_strategy(launcher, settings, runner, build_only=True)
    if args.force:
        strategy.build([])
        return 0
    strategy.prelaunch([])
    if not strategy.built:
        logging.info(f"Image {logging.highlight(strategy.image_name())} is up to date.")
    return 0
