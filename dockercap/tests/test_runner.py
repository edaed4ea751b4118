from __future__ import annotations

import sys
from pathlib import Path

import pytest

from dockercap.core.runner import CommandRunner, RunnerError


def test_dry_run_prints_instead_of_running() -> None:
    messages: list[str] = []
    runner = CommandRunner(dry_run=True, printer=messages.append)

    result = runner.run(["docker", "build", "-t", "hello world", "."])

    assert result.returncode == 0
    assert messages == ["[dry-run] $ docker build -t 'hello world' ."]


def test_run_captures_output_and_uses_cwd(tmp_path: Path) -> None:
    runner = CommandRunner()

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        cwd=tmp_path,
        capture_output=True,
    )

    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_run_without_inheriting_environment(monkeypatch) -> None:
    monkeypatch.setenv("HOST_ONLY", "leak")
    runner = CommandRunner()

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.environ.get('HOST_ONLY', '-'), os.environ['A'])"],
        env={"A": "1"},
        inherit_env=False,
        capture_output=True,
    )

    assert result.stdout.split() == ["-", "1"]


def test_non_zero_exit_raises_with_returncode() -> None:
    runner = CommandRunner()
    with pytest.raises(RunnerError) as exc_info:
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            capture_output=True,
        )
    assert exc_info.value.returncode == 3
    assert "boom" in str(exc_info.value)


def test_check_false_returns_exit_code() -> None:
    result = CommandRunner().run([sys.executable, "-c", "raise SystemExit(4)"], check=False)
    assert result.returncode == 4


def test_missing_command_and_empty_command() -> None:
    runner = CommandRunner()
    with pytest.raises(RunnerError):
        runner.run(["definitely-not-a-real-binary-xyz"])
    with pytest.raises(RunnerError):
        runner.run([])
