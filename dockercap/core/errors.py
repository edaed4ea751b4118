"""Error taxonomy for image build and launch."""

from __future__ import annotations

from pathlib import Path


class DockerCapError(RuntimeError):
    """Base class for launch failures."""


class ConfigurationError(DockerCapError):
    """Fatal misconfiguration. Not retryable."""


class UnrecognizedPathError(ConfigurationError):
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"unexpected file: {self.path}")


class InvalidRuntimeVersionError(ConfigurationError):
    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"unrecognized major Java version: {version}")


class ManifestError(ConfigurationError):
    """Raised when the artifact manifest cannot be read or is incomplete."""


class StagingIOError(DockerCapError):
    """Raised when the build context cannot be assembled."""


class BuildToolError(DockerCapError):
    """Raised when the external image build fails."""


class CleanupError(DockerCapError):
    """Raised when the build context cannot be removed. Logged, never propagated."""


class MarkerWriteError(DockerCapError):
    """Raised when the freshness marker cannot be written. Logged, never propagated."""
