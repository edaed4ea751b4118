"""
Dockerfile generation.

Render the Dockerfile for a build context from the virtualized launch command
and the artifact's manifest attributes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from dockercap.core.errors import ConfigurationError, InvalidRuntimeVersionError, StagingIOError
from dockercap.core.launcher import Launcher
from dockercap.core.manifest import parse_boolean
from dockercap.core.paths import VirtualizedCommand

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
DESCRIPTOR_FILE = "Dockerfile"

ATTR_JAVA_VERSION = "Java-Version"
ATTR_JDK_REQUIRED = "JDK-Required"
ATTR_EXPOSE = "Expose-Ports"

DEFAULT_IMAGE_FAMILY = "java"
LATEST_JAVA_VERSION = "8"
MIN_MAJOR_JAVA_VERSION = 5

_INVALID_ENV_KEY = re.compile(r"[\s=]")


@dataclass(frozen=True)
class BuildDescriptor:
    base_image: str
    artifact_name: str
    has_app: bool
    environment: tuple[tuple[str, str], ...]
    exposed_ports: tuple[str, ...]
    entrypoint: tuple[str, ...]

    def render(self) -> str:
        env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        template = env.get_template("Dockerfile.j2")
        return template.render(
            base_image=self.base_image,
            artifact_name=self.artifact_name,
            has_app=self.has_app,
            environment=[(key, quoted_value(value)) for key, value in self.environment],
            exposed_ports=self.exposed_ports,
            entrypoint=quoted_array(self.entrypoint),
        )

    def instructions(self) -> list[str]:
        return self.render().splitlines()


def quoted_array(items: tuple[str, ...] | list[str]) -> str:
    return json.dumps([str(item) for item in items], separators=(",", ":"), ensure_ascii=False)


def quoted_value(value: str) -> str:
    """Double-quote an ``ENV`` value. ``$`` is escaped so the builder does not expand it."""
    return json.dumps(str(value), ensure_ascii=False).replace("$", "\\$")


def check_environment(environment: dict[str, str]) -> tuple[tuple[str, str], ...]:
    for key in environment:
        if key == "" or _INVALID_ENV_KEY.search(key):
            raise ConfigurationError(f"invalid environment variable name: {key!r}")
    return tuple(environment.items())


def java_version(version: str) -> str:
    """Select the image version tag from a ``Java-Version`` attribute.

    A bare major version is used as is. Otherwise the second dot-separated
    component is taken verbatim, so ``1.8`` gives ``8`` and ``8.0`` gives ``0``.
    """
    parts = version.strip().split(".")
    if len(parts) == 1:
        try:
            major = int(parts[0])
        except ValueError as exc:
            raise InvalidRuntimeVersionError(version) from exc
        if major < MIN_MAJOR_JAVA_VERSION:
            raise InvalidRuntimeVersionError(version)
        return parts[0]
    return parts[1]


def base_image(
    launcher: Launcher,
    *,
    image_family: str = DEFAULT_IMAGE_FAMILY,
    latest_java_version: str = LATEST_JAVA_VERSION,
) -> str:
    jdk = parse_boolean(launcher.attribute(ATTR_JDK_REQUIRED), False)
    declared = launcher.attribute(ATTR_JAVA_VERSION)
    version = java_version(declared) if declared is not None else latest_java_version
    return f"{image_family}:{version}-{'jdk' if jdk else 'jre'}"


def generate(
    command: VirtualizedCommand,
    launcher: Launcher,
    *,
    image_family: str = DEFAULT_IMAGE_FAMILY,
    latest_java_version: str = LATEST_JAVA_VERSION,
) -> BuildDescriptor:
    exposed: tuple[str, ...] = ()
    if launcher.has_attribute(ATTR_EXPOSE):
        exposed = tuple(launcher.list_attribute(ATTR_EXPOSE))
    return BuildDescriptor(
        base_image=base_image(
            launcher,
            image_family=image_family,
            latest_java_version=latest_java_version,
        ),
        artifact_name=launcher.artifact_path.name,
        has_app=launcher.app_cache is not None,
        environment=check_environment(command.environment),
        exposed_ports=exposed,
        entrypoint=tuple(command.argv),
    )


def write_descriptor(descriptor: BuildDescriptor, context_dir: Path) -> Path:
    """Write the Dockerfile into ``context_dir``. Existing files are never overwritten."""
    target = context_dir / DESCRIPTOR_FILE
    try:
        with open(target, "x", encoding="utf-8") as f:
            f.write(descriptor.render())
    except OSError as exc:
        raise StagingIOError(f"failed to write {target}: {exc}") from exc
    return target
