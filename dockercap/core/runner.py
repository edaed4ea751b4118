"""Command execution helpers for image build and launch."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Sequence


@dataclass(frozen=True)
class CompletedCommand:
    """Normalized command execution result."""

    cmd: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""


class RunnerError(RuntimeError):
    """Raised when a command execution fails."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class CommandRunner:
    """Blocking subprocess wrapper with dry-run support.

    Commands inherit the host environment unless ``inherit_env=False`` is
    passed, in which case the child sees only ``env``.
    """

    def __init__(
        self,
        *,
        dry_run: bool = False,
        printer: Callable[[str], None] | None = None,
    ) -> None:
        self.dry_run = dry_run
        self._printer = printer or print

    def format_cmd(self, cmd: Sequence[str]) -> str:
        return "$ " + " ".join(shlex.quote(str(token)) for token in cmd)

    def emit(self, message: str) -> None:
        self._printer(message)

    def which(self, command: str) -> str | None:
        resolved = shutil.which(command)
        if resolved is None:
            return None
        return str(Path(resolved).resolve())

    def require_command(self, command: str) -> str:
        resolved = self.which(command)
        if resolved is None:
            raise RunnerError(f"required command not found: {command}")
        return resolved

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        inherit_env: bool = True,
        capture_output: bool = False,
        check: bool = True,
    ) -> CompletedCommand:
        if not cmd:
            raise RunnerError("command is empty")
        tokens = [str(token) for token in cmd]
        rendered = self.format_cmd(tokens)
        if self.dry_run:
            self.emit(f"[dry-run] {rendered}")
            return CompletedCommand(tuple(tokens), 0, "", "")

        run_env = dict(os.environ) if inherit_env else {}
        if env:
            run_env.update({str(key): str(value) for key, value in env.items()})

        try:
            completed = subprocess.run(
                tokens,
                cwd=str(cwd) if cwd else None,
                env=run_env,
                stdout=subprocess.PIPE if capture_output else None,
                stderr=subprocess.PIPE if capture_output else None,
                text=True,
                check=False,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise RunnerError(f"command not found: {tokens[0]}") from exc

        if check and completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            if detail:
                raise RunnerError(
                    f"command failed with exit code {completed.returncode}: {rendered}\n{detail}",
                    completed.returncode,
                )
            raise RunnerError(
                f"command failed with exit code {completed.returncode}: {rendered}",
                completed.returncode,
            )

        return CompletedCommand(
            tuple(tokens),
            completed.returncode,
            completed.stdout or "",
            completed.stderr or "",
        )
