"""Launcher for capsule JARs described by their manifest."""

from __future__ import annotations

import os
import shutil
import zipfile
from pathlib import Path, PurePosixPath

from dockercap.core import logging as console
from dockercap.core.errors import ConfigurationError, ManifestError, StagingIOError
from dockercap.core.launcher import EnvironmentConfig, LaunchCommand, Launcher, PathMapper
from dockercap.core.manifest import Manifest, read_manifest

ATTR_APP_NAME = "Application-Name"
ATTR_APP_VERSION = "Application-Version"
ATTR_APP_CLASS = "Application-Class"
ATTR_MAIN_CLASS = "Main-Class"
ATTR_EXTRACT = "Extract-Capsule"
ATTR_JVM_ARGS = "JVM-Args"
ATTR_SYSTEM_PROPERTIES = "System-Properties"
ATTR_APP_CLASS_PATH = "App-Class-Path"
ATTR_DEPENDENCIES = "Dependencies"
ATTR_ENVIRONMENT = "Environment-Variables"

EXTRACTED_MARKER = ".extracted"

PLATFORM_NATIVE_LIBRARY_PATHS: tuple[str, ...] = (
    "/usr/java/packages/lib/amd64",
    "/usr/lib/x86_64-linux-gnu/jni",
    "/lib/x86_64-linux-gnu",
    "/usr/lib/x86_64-linux-gnu",
    "/usr/lib/jni",
    "/lib",
    "/usr/lib",
)


def dependency_path(repository: Path, coordinates: str) -> Path:
    """Resolve ``group:artifact:version[:classifier]`` to its Maven-layout JAR."""
    parts = coordinates.split(":")
    if len(parts) not in (3, 4) or any(part == "" for part in parts):
        raise ConfigurationError(f"invalid dependency coordinates: {coordinates}")
    group, artifact, version = parts[:3]
    classifier = f"-{parts[3]}" if len(parts) == 4 else ""
    return (
        repository.joinpath(*group.split("."))
        / artifact
        / version
        / f"{artifact}-{version}{classifier}.jar"
    )


def _is_extractable(name: str) -> bool:
    if name.endswith("/"):
        return False
    if name.upper().startswith("META-INF/"):
        return False
    return not name.endswith(".class")


class JarLauncher(Launcher):
    def __init__(
        self,
        jar_file: Path,
        *,
        cache_root: Path,
        dependency_repository: Path,
        java_home: Path | None = None,
        manifest: Manifest | None = None,
    ) -> None:
        self._jar = Path(os.path.abspath(jar_file))
        self._manifest = manifest if manifest is not None else read_manifest(self._jar)
        self._cache_root = Path(os.path.abspath(cache_root))
        self._repository = Path(os.path.abspath(dependency_repository))
        self._java_home = java_home

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def artifact_path(self) -> Path:
        return self._jar

    @property
    def app_name(self) -> str:
        return self._manifest.get(ATTR_APP_NAME) or self._jar.stem

    @property
    def app_version(self) -> str | None:
        return self._manifest.get(ATTR_APP_VERSION) or None

    @property
    def app_cache(self) -> Path | None:
        if not self._manifest.get_boolean(ATTR_EXTRACT, True):
            return None
        dir_name = self.app_name + (f"_{self.app_version}" if self.app_version else "")
        return self._cache_root / "apps" / dir_name

    @property
    def dependency_repository(self) -> Path:
        return self._repository

    @property
    def runtime_executable(self) -> Path:
        if self._java_home is not None:
            return Path(os.path.abspath(self._java_home)) / "bin" / "java"
        found = shutil.which("java")
        if found is None:
            return Path("/usr/bin/java")
        return Path(os.path.abspath(found))

    def native_library_paths(self) -> list[Path]:
        return [Path(p) for p in PLATFORM_NATIVE_LIBRARY_PATHS]

    def attribute(self, name: str) -> str | None:
        return self._manifest.get(name)

    def is_app_cache_up_to_date(self) -> bool:
        cache = self.app_cache
        if cache is None:
            return True
        marker = cache / EXTRACTED_MARKER
        if not marker.is_file():
            return False
        return marker.stat().st_mtime >= self._jar.stat().st_mtime

    def prepare_app_cache(self) -> Path | None:
        """Extract the JAR into the app cache if it is missing or stale."""
        cache = self.app_cache
        if cache is None or self.is_app_cache_up_to_date():
            return cache
        console.info(f"Extracting {self._jar.name} into {cache}")
        try:
            if cache.exists():
                shutil.rmtree(cache)
            cache.mkdir(parents=True)
            with zipfile.ZipFile(self._jar, "r") as zf:
                for info in zf.infolist():
                    if not _is_extractable(info.filename):
                        continue
                    target = self._extraction_target(cache, info.filename)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
            (cache / EXTRACTED_MARKER).touch()
        except zipfile.BadZipFile as exc:
            raise ManifestError(f"artifact is not a valid JAR: {self._jar}") from exc
        except OSError as exc:
            raise StagingIOError(f"failed to extract {self._jar} into {cache}: {exc}") from exc
        return cache

    @staticmethod
    def _extraction_target(cache: Path, name: str) -> Path:
        relative = PurePosixPath(name)
        if relative.is_absolute() or ".." in relative.parts:
            raise ConfigurationError(f"JAR entry escapes the app cache: {name}")
        return cache.joinpath(*relative.parts)

    def main_class(self) -> str:
        main = self._manifest.get(ATTR_APP_CLASS) or self._manifest.get(ATTR_MAIN_CLASS)
        if not main:
            raise ManifestError(
                f"{self._jar.name} declares neither {ATTR_APP_CLASS} nor {ATTR_MAIN_CLASS}"
            )
        return main

    def dependencies(self) -> list[Path]:
        resolved: list[Path] = []
        for coordinates in self._manifest.get_list(ATTR_DEPENDENCIES):
            path = dependency_path(self._repository, coordinates)
            if not path.is_file():
                raise ConfigurationError(
                    f"dependency {coordinates} is not in the local repository: {path}"
                )
            resolved.append(path)
        return resolved

    def class_path(self) -> list[Path]:
        entries = [self._jar]
        cache = self.app_cache
        for entry in self._manifest.get_list(ATTR_APP_CLASS_PATH):
            if cache is None:
                raise ConfigurationError(
                    f"{ATTR_APP_CLASS_PATH} requires an extracted app cache ({ATTR_EXTRACT})"
                )
            entries.append(cache / entry)
        entries.extend(self.dependencies())
        return entries

    def library_path(self) -> list[Path]:
        paths: list[Path] = []
        if self.app_cache is not None:
            paths.append(self.app_cache)
        paths.extend(self.native_library_paths())
        return paths

    def native_command(
        self,
        args: list[str],
        path_mapper: PathMapper,
        environment: EnvironmentConfig,
    ) -> LaunchCommand:
        argv: list[str] = [path_mapper(self.runtime_executable)]
        argv.extend(self._manifest.get_list(ATTR_JVM_ARGS))
        argv.append(
            "-Djava.library.path=" + ":".join(path_mapper(p) for p in self.library_path())
        )
        for key, value in self._manifest.get_map(ATTR_SYSTEM_PROPERTIES).items():
            argv.append(f"-D{key}={value}" if value else f"-D{key}")
        argv.extend(["-cp", ":".join(path_mapper(p) for p in self.class_path())])
        argv.append(self.main_class())
        argv.extend(args)
        env = environment.build(self._manifest.get_map(ATTR_ENVIRONMENT))
        return LaunchCommand(tuple(argv), env)
