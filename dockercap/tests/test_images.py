from __future__ import annotations

from pathlib import Path

import pytest
from docker.errors import BuildError

from dockercap.core import images
from dockercap.core.errors import BuildToolError
from dockercap.core.runner import CommandRunner, RunnerError


def test_cli_builder_runs_docker_build_in_context(fake_runner, tmp_path: Path) -> None:
    builder = images.CliImageBuilder(fake_runner)

    builder.build(tmp_path, "hello:1_0")

    assert fake_runner.commands == [["docker", "build", "-q", "-t", "hello:1_0", "."]]
    assert fake_runner.cwds == [tmp_path]


def test_cli_builder_wraps_runner_failure(tmp_path: Path) -> None:
    class FailingRunner:
        dry_run = False

        def run(self, cmd, **kwargs):
            raise RunnerError("command failed with exit code 1: $ docker build", 1)

    with pytest.raises(BuildToolError) as exc_info:
        images.CliImageBuilder(FailingRunner()).build(tmp_path, "hello")

    assert "hello" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RunnerError)


def test_sdk_builder_calls_engine_api(tmp_path: Path) -> None:
    calls: list[dict] = []

    class FakeImages:
        def build(self, **kwargs):
            calls.append(kwargs)
            return object(), iter(())

    class FakeClient:
        images = FakeImages()

    builder = images.SdkImageBuilder(client_factory=FakeClient)
    builder.build(tmp_path, "hello")

    assert calls == [
        {
            "path": str(tmp_path),
            "dockerfile": "Dockerfile",
            "tag": "hello",
            "rm": True,
            "quiet": True,
        }
    ]


def test_sdk_builder_wraps_docker_errors(tmp_path: Path) -> None:
    class FakeImages:
        def build(self, **kwargs):
            raise BuildError("step 3 failed", build_log=[])

    class FakeClient:
        images = FakeImages()

    with pytest.raises(BuildToolError):
        images.SdkImageBuilder(client_factory=FakeClient).build(tmp_path, "hello")


def test_sdk_builder_dry_run_skips_client(tmp_path: Path) -> None:
    messages: list[str] = []

    def _unexpected():
        raise AssertionError("client should not be created in dry-run")

    builder = images.SdkImageBuilder(dry_run=True, printer=messages.append, client_factory=_unexpected)
    builder.build(tmp_path, "hello")

    assert messages and messages[0].startswith("[dry-run]")


def test_create_builder_selects_backend() -> None:
    runner = CommandRunner(dry_run=True)
    assert isinstance(images.create_builder("cli", runner), images.CliImageBuilder)
    sdk = images.create_builder("sdk", runner)
    assert isinstance(sdk, images.SdkImageBuilder)
    assert sdk.dry_run is True
    with pytest.raises(ValueError):
        images.create_builder("podman", runner)


def test_run_command_appends_user_args() -> None:
    assert images.run_command("hello", ["a", "b"], ("--rm",)) == [
        "docker",
        "run",
        "--rm",
        "hello",
        "a",
        "b",
    ]
