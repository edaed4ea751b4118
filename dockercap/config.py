# Where: dockercap/config.py
# What: Settings, defaults and environment overrides for image build and launch.
# Why: Keep every tunable in one explicit value passed into the strategy.
from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from dockercap.core import descriptor
from dockercap.core.errors import ConfigurationError
from dockercap.core.images import BACKEND_CLI, VALID_BACKENDS
from dockercap.core.launcher import EnvironmentConfig

CONFIG_FILE_NAME = "dockercap.yml"

ENV_HOME = "DOCKERCAP_HOME"
ENV_REPO = "DOCKERCAP_REPO"
ENV_BUILD_IMAGE = "DOCKERCAP_BUILD_IMAGE"
ENV_BACKEND = "DOCKERCAP_BACKEND"
ENV_JAVA_HOME = "JAVA_HOME"


def find_project_root(current_path: Path | None = None) -> Path:
    """Find the project root by searching for pyproject.toml."""
    if current_path is None:
        current_path = Path.cwd()

    for path in [current_path] + list(current_path.parents):
        if (path / "pyproject.toml").exists():
            return path

    return Path(__file__).parent.parent.resolve()


def is_empty_or_true(value: str | None) -> bool:
    """Toggle semantics: unset is off, set-and-empty or ``true`` is on."""
    if value is None:
        return False
    return value == "" or value.strip().lower() == "true"


def default_cache_root() -> Path:
    return Path.home() / ".dockercap"


def default_dependency_repository() -> Path:
    return Path.home() / ".m2" / "repository"


@dataclass(frozen=True)
class Settings:
    image_family: str = descriptor.DEFAULT_IMAGE_FAMILY
    latest_java_version: str = descriptor.LATEST_JAVA_VERSION
    build_only: bool = False
    backend: str = BACKEND_CLI
    run_options: tuple[str, ...] = ()
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    cache_root: Path = field(default_factory=default_cache_root)
    dependency_repository: Path = field(default_factory=default_dependency_repository)
    java_home: Path | None = None
    verbose: bool = False
    dry_run: bool = False


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load the YAML configuration file. A missing file yields an empty mapping."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping")
    return data


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return path


def _load_environment(data: Mapping[str, Any], base_dir: Path) -> EnvironmentConfig:
    variables: dict[str, str] = {}
    env_file = data.get("env_file")
    if env_file:
        env_path = _resolve(base_dir, str(env_file))
        if not env_path.is_file():
            raise ConfigurationError(f"env_file not found: {env_path}")
        for key, value in dotenv_values(env_path).items():
            variables[key] = "" if value is None else value

    declared = data.get("environment") or {}
    if not isinstance(declared, dict):
        raise ConfigurationError("environment must be a mapping of variable names to values")
    for key, value in declared.items():
        variables[str(key)] = "" if value is None else str(value)

    return EnvironmentConfig(
        variables=variables,
        inherit_host=bool(data.get("inherit_host_environment", False)),
    )


def load_settings(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    *,
    verbose: bool = False,
    dry_run: bool = False,
) -> Settings:
    """Build settings from defaults, the YAML file, then environment variables."""
    source = dict(os.environ) if env is None else dict(env)
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME
    data = load_config_file(config_path)
    base_dir = config_path.parent

    cache_root = default_cache_root()
    if data.get("cache_root"):
        cache_root = _resolve(base_dir, str(data["cache_root"]))
    if source.get(ENV_HOME):
        cache_root = Path(source[ENV_HOME]).expanduser()

    repository = default_dependency_repository()
    if data.get("dependency_repository"):
        repository = _resolve(base_dir, str(data["dependency_repository"]))
    if source.get(ENV_REPO):
        repository = Path(source[ENV_REPO]).expanduser()

    java_home: Path | None = None
    if data.get("java_home"):
        java_home = _resolve(base_dir, str(data["java_home"]))
    elif source.get(ENV_JAVA_HOME):
        java_home = Path(source[ENV_JAVA_HOME]).expanduser()

    backend = str(source.get(ENV_BACKEND) or data.get("backend") or BACKEND_CLI).strip()
    if backend not in VALID_BACKENDS:
        raise ConfigurationError(
            f"unknown backend: {backend} (expected one of {', '.join(VALID_BACKENDS)})"
        )

    run_options = data.get("run_options") or []
    if not isinstance(run_options, list):
        raise ConfigurationError("run_options must be a list")

    build_only = bool(data.get("build_only", False))
    if ENV_BUILD_IMAGE in source:
        build_only = is_empty_or_true(source[ENV_BUILD_IMAGE])

    return Settings(
        image_family=str(data.get("image_family") or descriptor.DEFAULT_IMAGE_FAMILY),
        latest_java_version=str(
            data.get("latest_java_version") or descriptor.LATEST_JAVA_VERSION
        ),
        build_only=build_only,
        backend=backend,
        run_options=tuple(str(option) for option in run_options),
        environment=_load_environment(data, base_dir),
        cache_root=cache_root,
        dependency_repository=repository,
        java_home=java_home,
        verbose=verbose,
        dry_run=dry_run,
    )
