"""Shared fixtures for dockercap tests."""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from dockercap.core.launcher import EnvironmentConfig, LaunchCommand, Launcher, PathMapper
from dockercap.core.runner import CompletedCommand

NATIVE_LIBRARY_PATHS = (Path("/usr/lib/jni"), Path("/lib"))


class FakeLauncher(Launcher):
    def __init__(
        self,
        root: Path,
        *,
        attributes: dict[str, str] | None = None,
        with_app_cache: bool = True,
        dependencies: tuple[str, ...] = ("org/example/lib/1.0/lib-1.0.jar",),
        up_to_date: bool = True,
        name: str = "hello",
        version: str | None = None,
    ) -> None:
        self.root = root
        self.jar = root / "artifacts" / "hello.jar"
        self.jar.parent.mkdir(parents=True, exist_ok=True)
        self.jar.write_bytes(b"PK-fake-jar")

        self.cache: Path | None = None
        if with_app_cache:
            self.cache = root / "cache" / "hello"
            (self.cache / "lib").mkdir(parents=True, exist_ok=True)
            (self.cache / "lib" / "x.so").write_bytes(b"\x7fELF")

        self.repo = root / "repo"
        self.deps: list[Path] = []
        for relative in dependencies:
            dep = self.repo / relative
            dep.parent.mkdir(parents=True, exist_ok=True)
            dep.write_bytes(b"PK-dep")
            self.deps.append(dep)

        self.java = root / "jdk" / "bin" / "java"
        self.attributes = dict(attributes or {})
        self.up_to_date = up_to_date
        self.name = name
        self.version = version
        self.native_calls = 0

    @property
    def artifact_path(self) -> Path:
        return self.jar

    @property
    def app_cache(self) -> Path | None:
        return self.cache

    @property
    def dependency_repository(self) -> Path:
        return self.repo

    @property
    def runtime_executable(self) -> Path:
        return self.java

    @property
    def app_name(self) -> str:
        return self.name

    @property
    def app_version(self) -> str | None:
        return self.version

    def native_library_paths(self) -> list[Path]:
        return list(NATIVE_LIBRARY_PATHS)

    def is_app_cache_up_to_date(self) -> bool:
        return self.up_to_date

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def native_command(
        self,
        args: list[str],
        path_mapper: PathMapper,
        environment: EnvironmentConfig,
    ) -> LaunchCommand:
        self.native_calls += 1
        library = ([self.cache / "lib"] if self.cache else []) + self.native_library_paths()
        argv = [
            path_mapper(self.java),
            "-Djava.library.path=" + ":".join(path_mapper(p) for p in library),
            "-cp",
            ":".join(path_mapper(p) for p in [self.jar, *self.deps]),
            "com.example.Main",
            *args,
        ]
        return LaunchCommand(tuple(argv), environment.build())


@pytest.fixture
def make_launcher(tmp_path: Path):
    def _make(**kwargs) -> FakeLauncher:
        return FakeLauncher(tmp_path / "host", **kwargs)

    return _make


@pytest.fixture
def make_jar(tmp_path: Path):
    def _make(
        name: str = "hello.jar",
        attributes: dict[str, str] | None = None,
        files: dict[str, bytes] | None = None,
    ) -> Path:
        jar = tmp_path / "jars" / name
        jar.parent.mkdir(parents=True, exist_ok=True)
        lines = ["Manifest-Version: 1.0"]
        lines.extend(f"{key}: {value}" for key, value in (attributes or {}).items())
        with zipfile.ZipFile(jar, "w") as zf:
            zf.writestr("META-INF/MANIFEST.MF", "\r\n".join(lines) + "\r\n\r\n")
            for entry, content in (files or {}).items():
                zf.writestr(entry, content)
        return jar

    return _make


@dataclass
class FakeRunner:
    dry_run: bool = False
    returncode: int = 0
    commands: list[list[str]] = field(default_factory=list)
    cwds: list[Path | None] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    def emit(self, message: str) -> None:
        self.messages.append(message)

    def run(
        self,
        cmd,
        *,
        cwd=None,
        env=None,
        inherit_env: bool = True,
        capture_output: bool = False,
        check: bool = True,
    ) -> CompletedCommand:
        del env, inherit_env, capture_output, check
        command = [str(token) for token in cmd]
        self.commands.append(command)
        self.cwds.append(cwd)
        return CompletedCommand(tuple(command), self.returncode, "", "")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
