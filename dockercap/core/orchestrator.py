"""Decides between building an image, running it, and native execution."""

from __future__ import annotations

import enum
import re
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from dockercap.core import context as build_context
from dockercap.core import descriptor, freshness
from dockercap.core import logging as console
from dockercap.core.errors import CleanupError, MarkerWriteError
from dockercap.core.images import ImageBuilder, run_command
from dockercap.core.launcher import EnvironmentConfig, Launcher
from dockercap.core.paths import virtualize_command

logger = logging.getLogger(__name__)


class LaunchOutcome(enum.Enum):
    RUN_CONTAINER = "run-container"
    DEFER_TO_NATIVE = "defer-to-native"


@dataclass(frozen=True)
class BuildOptions:
    build_only: bool = False
    image_family: str = descriptor.DEFAULT_IMAGE_FAMILY
    latest_java_version: str = descriptor.LATEST_JAVA_VERSION
    run_options: tuple[str, ...] = ()
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    context_parent: Path | None = None
    dry_run: bool = False


_INVALID_IMAGE_CHARS = re.compile(r"[^a-z0-9_.-]+")


def _image_component(value: str) -> str:
    return _INVALID_IMAGE_CHARS.sub("_", value.lower()).replace(".", "_")


def image_name(app_name: str, app_version: str | None) -> str:
    """``name[:version]``, lowercased, with runs of characters a tag cannot hold collapsed to ``_``."""
    name = _image_component(app_name)
    if app_version:
        name += ":" + _image_component(app_version)
    return name


class ImageBuildStrategy:
    """Image-builder strategy over an injected Launcher.

    ``prelaunch`` returns the command to execute instead of the native
    launch, or ``None`` when nothing should run in a container.
    """

    def __init__(self, launcher: Launcher, builder: ImageBuilder, options: BuildOptions) -> None:
        self.launcher = launcher
        self.builder = builder
        self.options = options
        self.outcome: LaunchOutcome | None = None
        self.built = False

    def image_name(self) -> str:
        return image_name(self.launcher.app_name, self.launcher.app_version)

    def needs_build(self) -> bool:
        if not self.launcher.is_app_cache_up_to_date():
            return True
        return not freshness.is_marked(self.launcher.app_cache)

    def render_descriptor(self, args: Sequence[str] = ()) -> descriptor.BuildDescriptor:
        command = virtualize_command(self.launcher, args, self.options.environment)
        return descriptor.generate(
            command,
            self.launcher,
            image_family=self.options.image_family,
            latest_java_version=self.options.latest_java_version,
        )

    def build(self, args: Sequence[str] = ()) -> str:
        tag = self.image_name()
        console.step(f"Building docker image {console.highlight(tag)}")
        command = virtualize_command(self.launcher, args, self.options.environment)
        ctx = build_context.create_context(
            self.launcher,
            command.dependencies,
            parent=self.options.context_parent,
        )
        try:
            built = descriptor.generate(
                command,
                self.launcher,
                image_family=self.options.image_family,
                latest_java_version=self.options.latest_java_version,
            )
            dockerfile = descriptor.write_descriptor(built, ctx.root)
            console.verbose(f"Dockerfile: {dockerfile}")
            self.builder.build(ctx.root, tag)
        finally:
            try:
                ctx.discard()
            except CleanupError as exc:
                logger.warning("%s", exc)

        self.built = True
        if self.options.dry_run:
            return tag
        try:
            freshness.mark_fresh(self.launcher.app_cache)
        except MarkerWriteError as exc:
            logger.warning("%s; the next launch will rebuild", exc)
        console.success(f"Built docker image {tag}")
        return tag

    def prelaunch(self, args: Sequence[str]) -> list[str] | None:
        tag = self.image_name()
        if self.needs_build():
            self.build(args)
        else:
            console.verbose(f"Image {tag} is up to date")

        if self.options.build_only:
            self.outcome = LaunchOutcome.DEFER_TO_NATIVE
            return None
        self.outcome = LaunchOutcome.RUN_CONTAINER
        return run_command(tag, args, self.options.run_options)
