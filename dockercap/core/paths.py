"""Translation of host paths into the image filesystem layout.

Every path a launcher emits while building its command line is classified
into exactly one category and rewritten for the container:

===================  ==============================  =========
host path            in-container path               staged as
===================  ==============================  =========
runtime executable   ``java``                        (image)
artifact             ``/<artifact name>``            artifact
app cache member     ``/app/<relative path>``        ``app/``
dependency           ``/dep/<base name>``            ``dep/``
native library dir   unchanged                       (image)
===================  ==============================  =========

Anything else is a configuration error.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from dockercap.core.errors import ConfigurationError, UnrecognizedPathError
from dockercap.core.launcher import EnvironmentConfig, Launcher

logger = logging.getLogger(__name__)

CONTAINER_ROOT = "/"
CONTAINER_APP_DIR = "/app"
CONTAINER_DEP_DIR = "/dep"
CONTAINER_JAVA = "java"


def normalize(path: Path | str) -> Path:
    return Path(os.path.normpath(os.path.abspath(os.fspath(path))))


def _is_within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


class DependencySet:
    """Insertion-ordered set of dependency paths, staged by base name.

    The first path seen for a base name wins. Later paths sharing that base
    name resolve to the same in-container file and are reported in
    ``collisions`` instead of being staged.
    """

    def __init__(self) -> None:
        self._by_name: dict[str, Path] = {}
        self._collisions: list[tuple[Path, Path]] = []
        self._frozen = False

    def add(self, path: Path) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"dependency discovered after the build context was sealed: {path}"
            )
        existing = self._by_name.get(path.name)
        if existing is None:
            self._by_name[path.name] = path
            return
        if existing == path:
            return
        if (existing, path) not in self._collisions:
            logger.warning(
                "dependency %s shares base name with %s; only the first is staged",
                path,
                existing,
            )
            self._collisions.append((existing, path))

    def freeze(self) -> "DependencySet":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def collisions(self) -> list[tuple[Path, Path]]:
        return list(self._collisions)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, Path):
            return False
        return self._by_name.get(path.name) == path


class PathVirtualizer:
    def __init__(
        self,
        *,
        artifact: Path,
        app_cache: Path | None,
        dependency_repository: Path,
        runtime_executable: Path,
        native_library_paths: Sequence[Path],
        dependencies: DependencySet | None = None,
    ) -> None:
        self.artifact = normalize(artifact)
        self.app_cache = normalize(app_cache) if app_cache is not None else None
        self.dependency_repository = normalize(dependency_repository)
        self.runtime_executable = normalize(runtime_executable)
        self.native_library_paths = [normalize(p) for p in native_library_paths]
        self.dependencies = dependencies if dependencies is not None else DependencySet()

    @classmethod
    def for_launcher(cls, launcher: Launcher) -> "PathVirtualizer":
        return cls(
            artifact=launcher.artifact_path,
            app_cache=launcher.app_cache,
            dependency_repository=launcher.dependency_repository,
            runtime_executable=launcher.runtime_executable,
            native_library_paths=launcher.native_library_paths(),
        )

    def virtualize(self, path: Path | str) -> str:
        p = normalize(path)
        if p == self.runtime_executable:
            return CONTAINER_JAVA
        if p == self.artifact:
            return CONTAINER_ROOT + p.name
        if self.app_cache is not None and _is_within(p, self.app_cache):
            relative = p.relative_to(self.app_cache).as_posix()
            if relative == ".":
                return CONTAINER_APP_DIR
            return str(PurePosixPath(CONTAINER_APP_DIR) / relative)
        if _is_within(p, self.dependency_repository) and p != self.dependency_repository:
            self.dependencies.add(p)
            return f"{CONTAINER_DEP_DIR}/{p.name}"
        if p in self.native_library_paths:
            return p.as_posix()
        raise UnrecognizedPathError(p)


@dataclass(frozen=True)
class VirtualizedCommand:
    argv: tuple[str, ...]
    environment: dict[str, str]
    dependencies: DependencySet


def virtualize_command(
    launcher: Launcher,
    args: Sequence[str],
    environment: EnvironmentConfig,
) -> VirtualizedCommand:
    """Run the launcher's full command line through a fresh virtualizer.

    The returned dependency set is sealed: it holds every dependency the
    command references and rejects later additions.
    """
    virtualizer = PathVirtualizer.for_launcher(launcher)
    command = launcher.native_command(list(args), virtualizer.virtualize, environment.isolated())
    command = command.without_trailing(len(args))
    return VirtualizedCommand(
        argv=command.argv,
        environment=dict(command.environment),
        dependencies=virtualizer.dependencies.freeze(),
    )
