"""Capability interface the image builder consumes from the host launcher."""

from __future__ import annotations

import abc
import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

PathMapper = Callable[[Path], str]


def host_path(path: Path) -> str:
    """Identity mapper used for native launches."""
    return str(path)


@dataclass(frozen=True)
class EnvironmentConfig:
    """Variables explicitly configured for the launched process.

    The host environment is only merged in when ``inherit_host`` is set.
    Image builds always construct their launch environment with
    ``inherit_host=False``.
    """

    variables: Mapping[str, str] = field(default_factory=dict)
    inherit_host: bool = False

    def isolated(self) -> "EnvironmentConfig":
        return EnvironmentConfig(variables=dict(self.variables), inherit_host=False)

    def build(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        env: dict[str, str] = dict(os.environ) if self.inherit_host else {}
        env.update(self.variables)
        if extra:
            env.update(extra)
        return env


@dataclass(frozen=True)
class LaunchCommand:
    argv: tuple[str, ...]
    environment: dict[str, str]

    def without_trailing(self, count: int) -> "LaunchCommand":
        if count <= 0:
            return self
        if count > len(self.argv):
            raise ValueError(f"cannot strip {count} arguments from {len(self.argv)}")
        return LaunchCommand(self.argv[: len(self.argv) - count], dict(self.environment))


class Launcher(abc.ABC):
    """Accessors and the native command line for one application artifact."""

    @property
    @abc.abstractmethod
    def artifact_path(self) -> Path: ...

    @property
    @abc.abstractmethod
    def app_cache(self) -> Path | None: ...

    @property
    @abc.abstractmethod
    def dependency_repository(self) -> Path: ...

    @property
    @abc.abstractmethod
    def runtime_executable(self) -> Path: ...

    @property
    @abc.abstractmethod
    def app_name(self) -> str: ...

    @property
    @abc.abstractmethod
    def app_version(self) -> str | None: ...

    @abc.abstractmethod
    def native_library_paths(self) -> list[Path]: ...

    @abc.abstractmethod
    def is_app_cache_up_to_date(self) -> bool: ...

    @abc.abstractmethod
    def native_command(
        self,
        args: list[str],
        path_mapper: PathMapper,
        environment: EnvironmentConfig,
    ) -> LaunchCommand:
        """Build the native launch command, passing every emitted path through ``path_mapper``."""

    @abc.abstractmethod
    def attribute(self, name: str) -> str | None: ...

    def has_attribute(self, name: str) -> bool:
        return self.attribute(name) is not None

    def list_attribute(self, name: str) -> list[str]:
        value = self.attribute(name)
        return [item for item in re.split(r"[\s,]+", value) if item] if value else []
