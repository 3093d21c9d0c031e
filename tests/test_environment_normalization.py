from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from launchdeck.runtime.environment import (
    build_path_query,
    extract_path,
    login_shell,
    normalize_environment,
)
from launchdeck.runtime.executor import ProcessExecutor


def _cp(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def test_login_shell_defaults_to_bin_sh() -> None:
    assert login_shell({"SHELL": "/bin/zsh"}) == "/bin/zsh"
    assert login_shell({}) == "/bin/sh"


def test_path_query_runs_interactive_login_shell() -> None:
    command = build_path_query("/bin/zsh")

    assert command[:2] == ["/bin/zsh", "-ilc"]
    assert "$PATH" in command[2]


def test_extract_path_ignores_shell_banners() -> None:
    stdout = "Welcome back!\n__LAUNCHDECK_PATH__/opt/homebrew/bin:/usr/bin__LAUNCHDECK_PATH__\n"

    assert extract_path(stdout) == "/opt/homebrew/bin:/usr/bin"
    assert extract_path("no markers here") == ""
    assert extract_path("__LAUNCHDECK_PATH__/usr/bin") == ""


def test_normalize_replaces_path_from_login_shell() -> None:
    commands: list[list[str]] = []

    def runner(cmd: list[str], **_: object) -> subprocess.CompletedProcess:
        commands.append(cmd)
        return _cp(0, "__LAUNCHDECK_PATH__/usr/local/bin:/usr/bin:/bin__LAUNCHDECK_PATH__")

    environ = {"PATH": "/usr/bin:/bin", "SHELL": "/bin/zsh"}
    result = normalize_environment(environ, system_name="Darwin", executor=ProcessExecutor(runner=runner))

    assert result.applied
    assert environ["PATH"] == "/usr/local/bin:/usr/bin:/bin"
    assert commands[0][:2] == ["/bin/zsh", "-ilc"]


def test_normalize_is_skipped_on_windows() -> None:
    calls: list[object] = []
    environ = {"PATH": r"C:\Windows"}

    result = normalize_environment(
        environ,
        system_name="Windows",
        executor=ProcessExecutor(runner=lambda *args, **kwargs: calls.append(args)),
    )

    assert not result.applied
    assert result.reason == "windows"
    assert calls == []
    assert environ["PATH"] == r"C:\Windows"


def test_failed_shell_leaves_path_unchanged() -> None:
    environ = {"PATH": "/usr/bin", "SHELL": "/bin/bash"}

    result = normalize_environment(
        environ,
        system_name="Linux",
        executor=ProcessExecutor(runner=lambda *args, **kwargs: _cp(1, stderr="rc file error")),
    )

    assert not result.applied
    assert result.reason == "rc file error"
    assert environ["PATH"] == "/usr/bin"


def test_empty_shell_output_leaves_path_unchanged() -> None:
    environ = {"PATH": "/usr/bin"}

    result = normalize_environment(
        environ,
        system_name="Darwin",
        executor=ProcessExecutor(runner=lambda *args, **kwargs: _cp(0, "__LAUNCHDECK_PATH____LAUNCHDECK_PATH__")),
    )

    assert not result.applied
    assert environ["PATH"] == "/usr/bin"


def test_timeout_leaves_path_unchanged() -> None:
    def runner(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    environ = {"PATH": "/usr/bin"}
    result = normalize_environment(
        environ,
        system_name="Darwin",
        executor=ProcessExecutor(runner=runner),
        timeout_seconds=3,
    )

    assert not result.applied
    assert "timed out" in result.reason
    assert environ["PATH"] == "/usr/bin"


@pytest.mark.integration
@pytest.mark.skipif(not Path("/bin/bash").exists(), reason="requires /bin/bash")
def test_login_shell_banner_with_invalid_utf8_still_normalizes(tmp_path: Path) -> None:
    (tmp_path / ".bash_profile").write_bytes(b"printf 'caf\\xe9 welcome\\n'\n")
    environ = {"PATH": "/usr/bin:/bin", "SHELL": "/bin/bash", "HOME": str(tmp_path)}

    result = normalize_environment(
        environ,
        system_name="Linux",
        executor=ProcessExecutor(timeout_seconds=15),
        timeout_seconds=15,
    )

    assert result.applied
    assert result.path
    assert environ["PATH"] == result.path


def test_undecodable_query_failure_keeps_original_path() -> None:
    def runner(cmd: list[str], **_: object) -> subprocess.CompletedProcess:
        raise UnicodeDecodeError("utf-8", b"\xe9", 0, 1, "invalid continuation byte")

    environ = {"PATH": "/usr/bin:/bin", "SHELL": "/bin/zsh"}
    result = normalize_environment(environ, system_name="Darwin", executor=ProcessExecutor(runner=runner))

    assert not result.applied
    assert environ["PATH"] == "/usr/bin:/bin"
