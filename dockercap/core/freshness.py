"""Sentinel tracking the last successful image build for an app cache."""

from __future__ import annotations

from pathlib import Path

from dockercap.core.errors import MarkerWriteError

MARKER_FILE_NAME = ".dockerized"


def marker_path(app_cache: Path) -> Path:
    return app_cache / MARKER_FILE_NAME


def is_marked(app_cache: Path | None) -> bool:
    if app_cache is None:
        return False
    return marker_path(app_cache).is_file()


def mark_fresh(app_cache: Path | None) -> Path:
    if app_cache is None:
        raise MarkerWriteError("no app cache to hold the build marker")
    marker = marker_path(app_cache)
    try:
        marker.touch(exist_ok=True)
    except OSError as exc:
        raise MarkerWriteError(f"failed to write build marker {marker}: {exc}") from exc
    return marker


def clear_marker(app_cache: Path | None) -> None:
    if app_cache is None:
        return
    marker_path(app_cache).unlink(missing_ok=True)
