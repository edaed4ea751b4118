"""Build context staging."""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from dockercap.core.errors import CleanupError, ConfigurationError, StagingIOError
from dockercap.core.launcher import Launcher
from dockercap.core.paths import DependencySet

logger = logging.getLogger(__name__)

CONTEXT_PREFIX = "dockercap-"
APP_DIR = "app"
DEP_DIR = "dep"


@dataclass
class BuildContext:
    root: Path
    artifact_name: str
    has_app: bool
    dependency_names: list[str] = field(default_factory=list)

    def discard(self) -> None:
        """Remove the context directory. Raises CleanupError on failure."""
        if not self.root.exists():
            return
        try:
            shutil.rmtree(self.root)
        except OSError as exc:
            raise CleanupError(f"failed to remove build context {self.root}: {exc}") from exc


def create_context(
    launcher: Launcher,
    dependencies: DependencySet,
    *,
    parent: Path | None = None,
) -> BuildContext:
    """Stage the artifact, app cache and dependencies into a fresh directory.

    ``dependencies`` must be sealed, i.e. produced by a completed
    virtualization pass over the full command line.
    """
    if not dependencies.frozen:
        raise ConfigurationError(
            "dependency set must be sealed by virtualizing the command line before staging"
        )

    try:
        root = Path(tempfile.mkdtemp(prefix=CONTEXT_PREFIX, dir=str(parent) if parent else None))
    except OSError as exc:
        raise StagingIOError(f"failed to create build context: {exc}") from exc

    artifact = launcher.artifact_path
    app_cache = launcher.app_cache
    context = BuildContext(root=root, artifact_name=artifact.name, has_app=app_cache is not None)
    try:
        shutil.copy2(artifact, root / artifact.name)
        if app_cache is not None:
            shutil.copytree(app_cache, root / APP_DIR)
        dep_dir = root / DEP_DIR
        dep_dir.mkdir()
        for dep in dependencies:
            shutil.copy2(dep, dep_dir / dep.name)
            context.dependency_names.append(dep.name)
    except OSError as exc:
        try:
            context.discard()
        except CleanupError as cleanup_exc:
            logger.warning("%s", cleanup_exc)
        raise StagingIOError(f"failed to stage build context in {root}: {exc}") from exc
    return context
