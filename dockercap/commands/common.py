"""Helpers shared by launch commands."""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from dockercap.config import Settings
from dockercap.core import logging
from dockercap.core.images import create_builder
from dockercap.core.jar_launcher import JarLauncher
from dockercap.core.orchestrator import BuildOptions, ImageBuildStrategy
from dockercap.core.runner import CommandRunner


def add_jar_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("jar", help="Path to the capsule JAR")


def add_app_args_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "app_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the application (prefix with -- to stop option parsing)",
    )


def app_args(args: argparse.Namespace) -> list[str]:
    values = list(getattr(args, "app_args", None) or [])
    if values and values[0] == "--":
        values = values[1:]
    return values


def open_launcher(args: argparse.Namespace, settings: Settings) -> JarLauncher:
    jar = Path(args.jar).expanduser()
    if not jar.is_file():
        raise FileNotFoundError(f"artifact not found: {jar}")
    launcher = JarLauncher(
        jar,
        cache_root=settings.cache_root,
        dependency_repository=settings.dependency_repository,
        java_home=settings.java_home,
    )
    if launcher.prepare_app_cache() is None:
        logging.warning(
            f"{jar.name} is not extracted; without an app cache the image is rebuilt on every launch"
        )
    return launcher


def build_options(settings: Settings) -> BuildOptions:
    return BuildOptions(
        build_only=settings.build_only,
        image_family=settings.image_family,
        latest_java_version=settings.latest_java_version,
        run_options=settings.run_options,
        environment=settings.environment,
        dry_run=settings.dry_run,
    )


def create_strategy(
    launcher: JarLauncher,
    settings: Settings,
    runner: CommandRunner,
    *,
    build_only: bool | None = None,
) -> ImageBuildStrategy:
    if build_only is not None:
        settings = replace(settings, build_only=build_only)
    return ImageBuildStrategy(
        launcher,
        create_builder(settings.backend, runner),
        build_options(settings),
    )
