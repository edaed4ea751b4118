"""Image build backends and run command construction."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

import docker
from docker.errors import DockerException

from dockercap.core.errors import BuildToolError
from dockercap.core.runner import CommandRunner, RunnerError

BACKEND_CLI = "cli"
BACKEND_SDK = "sdk"
VALID_BACKENDS = (BACKEND_CLI, BACKEND_SDK)


class ImageBuilder(Protocol):
    def build(self, context_dir: Path, tag: str) -> None: ...


class CliImageBuilder:
    """Builds with ``docker build`` in the context directory."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def build_command(self, tag: str) -> list[str]:
        return ["docker", "build", "-q", "-t", tag, "."]

    def build(self, context_dir: Path, tag: str) -> None:
        try:
            self.runner.run(self.build_command(tag), cwd=context_dir, capture_output=True)
        except RunnerError as exc:
            raise BuildToolError(f"image build failed for {tag}: {exc}") from exc


class SdkImageBuilder:
    """Builds through the Docker Engine API."""

    def __init__(
        self,
        *,
        dry_run: bool = False,
        printer: Callable[[str], None] | None = None,
        client_factory: Callable[[], Any] = docker.from_env,
    ) -> None:
        self.dry_run = dry_run
        self._printer = printer or print
        self._client_factory = client_factory

    def build(self, context_dir: Path, tag: str) -> None:
        if self.dry_run:
            self._printer(f"[dry-run] docker images.build path={context_dir} tag={tag}")
            return
        try:
            client = self._client_factory()
            client.images.build(
                path=str(context_dir),
                dockerfile="Dockerfile",
                tag=tag,
                rm=True,
                quiet=True,
            )
        except DockerException as exc:
            raise BuildToolError(f"image build failed for {tag}: {exc}") from exc


def create_builder(backend: str, runner: CommandRunner) -> ImageBuilder:
    if backend == BACKEND_CLI:
        return CliImageBuilder(runner)
    if backend == BACKEND_SDK:
        return SdkImageBuilder(dry_run=runner.dry_run, printer=runner.emit)
    raise ValueError(f"unknown build backend: {backend} (expected one of {', '.join(VALID_BACKENDS)})")


def run_command(image: str, args: Sequence[str], run_options: Sequence[str] = ()) -> list[str]:
    return ["docker", "run", *run_options, image, *args]
