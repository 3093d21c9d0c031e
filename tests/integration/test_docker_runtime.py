from __future__ import annotations

import subprocess
from pathlib import Path

from launchdeck.docker.runtime import RUNTIME_LOCATIONS, ContainerRuntime, find_runtime_binary
from launchdeck.runtime.executor import ProcessExecutor
from launchdeck.runtime.profile import (
    GIT_BASH_LOCATIONS,
    InterpreterStrategy,
    OsFamily,
    PlatformProfile,
)
from launchdeck.runtime.scripts import ScriptPaths


def _cp(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


_POSIX = PlatformProfile(OsFamily.MACOS, InterpreterStrategy.POSIX, ("/bin/bash", "-c"))


def test_configured_binary_wins() -> None:
    found = find_runtime_binary(
        OsFamily.MACOS,
        configured="/custom/docker",
        which=lambda *args, **kwargs: "/usr/bin/docker",
    )

    assert found == "/custom/docker"


def test_binary_found_on_normalized_path() -> None:
    seen: dict[str, object] = {}

    def which(name: str, path: str | None = None) -> str | None:
        seen["path"] = path
        return "/opt/homebrew/bin/docker"

    found = find_runtime_binary(OsFamily.MACOS, path="/opt/homebrew/bin:/usr/bin", which=which)

    assert found == "/opt/homebrew/bin/docker"
    assert seen["path"] == "/opt/homebrew/bin:/usr/bin"


def test_binary_falls_back_to_install_locations() -> None:
    expected = RUNTIME_LOCATIONS[OsFamily.WINDOWS][0]

    found = find_runtime_binary(
        OsFamily.WINDOWS,
        which=lambda *args, **kwargs: None,
        exists=lambda path: path == expected,
    )

    assert found == expected


def test_missing_binary_falls_back_to_bare_name() -> None:
    found = find_runtime_binary(OsFamily.LINUX, which=lambda *args, **kwargs: None, exists=lambda _: False)

    assert found == "docker"


def test_stack_scripts_run_through_profile_interpreter(tmp_path: Path) -> None:
    commands: list[list[str]] = []
    envs: list[object] = []

    def runner(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        commands.append(cmd)
        envs.append(kwargs["env"])
        return _cp(0)

    runtime = ContainerRuntime(
        _POSIX,
        ScriptPaths.from_directory(tmp_path),
        ProcessExecutor(runner=runner),
        environ={"PATH": "/usr/local/bin:/usr/bin"},
        runtime_binary="/usr/local/bin/docker",
    )
    runtime.version()
    runtime.up()
    runtime.verify_port()
    runtime.stop()
    runtime.open_runtime_app()

    assert commands[0] == ["/usr/local/bin/docker", "-v"]
    assert commands[1] == ["/bin/bash", "-c", str(tmp_path / "up")]
    assert commands[2] == ["/bin/bash", "-c", str(tmp_path / "verify-port")]
    assert commands[3] == ["/bin/bash", "-c", str(tmp_path / "stop")]
    assert commands[4] == ["/bin/bash", "-c", str(tmp_path / "open-docker")]
    assert all(env == {"PATH": "/usr/local/bin:/usr/bin"} for env in envs)


def test_probes_use_probe_timeout() -> None:
    timeouts: list[object] = []

    def runner(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        timeouts.append(kwargs["timeout"])
        return _cp(0)

    runtime = ContainerRuntime(
        _POSIX,
        ScriptPaths.from_directory("/stack/bin"),
        ProcessExecutor(runner=runner, timeout_seconds=600),
        probe_timeout_seconds=15,
    )
    runtime.version()
    runtime.verify_port()
    runtime.up()

    assert timeouts == [15, 15, 600]


def test_windows_scripts_use_translated_paths() -> None:
    commands: list[list[str]] = []

    def runner(cmd: list[str], **_: object) -> subprocess.CompletedProcess:
        commands.append(cmd)
        return _cp(0)

    profile = PlatformProfile(
        OsFamily.WINDOWS,
        InterpreterStrategy.GIT_BASH,
        (GIT_BASH_LOCATIONS[0], "-c"),
        mount_prefix="/",
    )
    scripts = ScriptPaths(
        up=Path(r"C:\LaunchDeck\bin\up"),
        stop=Path(r"C:\LaunchDeck\bin\stop"),
        start=Path(r"C:\LaunchDeck\bin\start"),
        verify_port=Path(r"C:\LaunchDeck\bin\verify-port"),
        open_docker=Path(r"C:\LaunchDeck\bin\open-docker"),
        docker_compose=Path(r"C:\LaunchDeck\bin\docker-compose"),
    )
    ContainerRuntime(profile, scripts, ProcessExecutor(runner=runner)).up()

    assert commands == [[GIT_BASH_LOCATIONS[0], "-c", "/c/LaunchDeck/bin/up"]]
