"""Container runtime adapter: binary detection and stack scripts."""

from __future__ import annotations

import logging as py_logging
import os
import shutil
from collections.abc import Callable, Mapping
from pathlib import Path

from launchdeck.constants import PROBE_TIMEOUT_SECONDS
from launchdeck.runtime.executor import ExecutionResult, ProcessExecutor
from launchdeck.runtime.profile import OsFamily, PlatformProfile
from launchdeck.runtime.scripts import ScriptPaths

logger = py_logging.getLogger(__name__)

RUNTIME_LOCATIONS = {
    OsFamily.MACOS: (
        "/usr/local/bin/docker",
        "/opt/homebrew/bin/docker",
        "/Applications/Docker.app/Contents/Resources/bin/docker",
    ),
    OsFamily.LINUX: (
        "/usr/local/bin/docker",
        "/usr/bin/docker",
        "/snap/bin/docker",
    ),
    OsFamily.WINDOWS: (
        r"C:\Program Files\Docker\Docker\resources\bin\docker.exe",
        r"C:\ProgramData\DockerDesktop\version-bin\docker.exe",
    ),
}


def find_runtime_binary(
    family: OsFamily,
    *,
    configured: str = "",
    path: str | None = None,
    which: Callable[..., str | None] | None = None,
    exists: Callable[[str], bool] | None = None,
) -> str:
    """Locate the docker executable; falls back to the bare name so the query reports it missing."""
    if configured:
        return configured
    which_func = which or shutil.which
    exists_func = exists or os.path.isfile
    found = which_func("docker", path=path)
    if found:
        return found
    for location in RUNTIME_LOCATIONS.get(family, ()):
        if exists_func(location):
            return location
    return "docker"


class ContainerRuntime:
    def __init__(
        self,
        profile: PlatformProfile,
        scripts: ScriptPaths,
        executor: ProcessExecutor,
        *,
        environ: Mapping[str, str] | None = None,
        runtime_binary: str = "docker",
        probe_timeout_seconds: float = PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.profile = profile
        self.scripts = scripts
        self.executor = executor
        self.environ = environ
        self.runtime_binary = runtime_binary
        self.probe_timeout_seconds = probe_timeout_seconds

    def _run_script(self, script: Path, *, timeout_seconds: float | None = None) -> ExecutionResult:
        command = self.profile.script_command(str(script))
        return self.executor.run(command, env=self.environ, timeout_seconds=timeout_seconds)

    def version(self) -> ExecutionResult:
        return self.executor.run(
            [self.runtime_binary, "-v"],
            env=self.environ,
            timeout_seconds=self.probe_timeout_seconds,
        )

    def open_runtime_app(self) -> ExecutionResult:
        return self._run_script(self.scripts.open_docker, timeout_seconds=self.probe_timeout_seconds)

    def up(self) -> ExecutionResult:
        return self._run_script(self.scripts.up)

    def verify_port(self) -> ExecutionResult:
        return self._run_script(self.scripts.verify_port, timeout_seconds=self.probe_timeout_seconds)

    def stop(self) -> ExecutionResult:
        return self._run_script(self.scripts.stop)
