"""CLI parser for launching an application directly on the host."""

from __future__ import annotations

import argparse

from dockercap.commands.common import add_app_args_argument, add_jar_argument, app_args, open_launcher
from dockercap.config import Settings
from dockercap.core.launcher import host_path
from dockercap.core.runner import CommandRunner


def register_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("native", help="Run the application as a host process")
    add_jar_argument(parser)
    add_app_args_argument(parser)
    parser.set_defaults(func=run)


def run(args: argparse.Namespace, runner: CommandRunner, settings: Settings) -> int:
    launcher = open_launcher(args, settings)
    command = launcher.native_command(app_args(args), host_path, settings.environment)
    result = runner.run(
        command.argv,
        env=command.environment,
        inherit_env=False,
        check=False,
    )
    return result.returncode
