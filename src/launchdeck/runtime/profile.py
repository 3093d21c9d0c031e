"""Platform profile resolver: shell interpreter and path translation."""

from __future__ import annotations

import logging as py_logging
import os
import platform
import re
import shlex
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from launchdeck.constants import GIT_FOR_WINDOWS_URL
from launchdeck.errors import FailureKind, LaunchDeckError, failure

logger = py_logging.getLogger(__name__)

GIT_BASH_LOCATIONS = (
    r"C:\Program Files\Git\bin\bash.exe",
    r"C:\Program Files (x86)\Git\bin\bash.exe",
)
POSIX_BASH_LOCATIONS = ("/bin/bash", "/usr/bin/bash", "/usr/local/bin/bash")

_WINDOWS_DRIVE_PATH = re.compile(r"^(?P<drive>[A-Za-z]):[\\/]*(?P<rest>.*)$")


class OsFamily(str, Enum):
    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"


class InterpreterStrategy(str, Enum):
    POSIX = "posix"
    GIT_BASH = "git-bash"
    WSL = "wsl"


_SYSTEM_FAMILIES = {
    "Darwin": OsFamily.MACOS,
    "Windows": OsFamily.WINDOWS,
    "Linux": OsFamily.LINUX,
}


def translate_windows_path(host_path: str, mount_prefix: str) -> str:
    """Rewrite ``C:\\a\\b`` to ``<mount_prefix>c/a/b``; other paths only get separators normalized."""
    normalized = host_path.replace("\\", "/")
    match = _WINDOWS_DRIVE_PATH.match(host_path)
    if not match:
        return normalized
    drive = match.group("drive").lower()
    rest = match.group("rest").replace("\\", "/").strip("/")
    rest = re.sub(r"/{2,}", "/", rest)
    if not rest:
        return f"{mount_prefix}{drive}"
    return f"{mount_prefix}{drive}/{rest}"


@dataclass(frozen=True)
class PlatformProfile:
    family: OsFamily
    strategy: InterpreterStrategy
    interpreter: tuple[str, ...]
    mount_prefix: str = ""

    @property
    def supports_exec_permission(self) -> bool:
        # Git Bash and WSL ignore unix execute bits on Windows files.
        return self.family != OsFamily.WINDOWS

    def translate_path(self, host_path: str) -> str:
        if self.family != OsFamily.WINDOWS:
            return host_path
        return translate_windows_path(host_path, self.mount_prefix)

    def script_command(self, script_path: str) -> list[str]:
        return [*self.interpreter, shlex.quote(self.translate_path(script_path))]


def _find_posix_bash(which: Callable[[str], str | None], exists: Callable[[str], bool]) -> str:
    for location in POSIX_BASH_LOCATIONS:
        if exists(location):
            return location
    return which("bash") or ""


def resolve_platform_profile(
    *,
    system_name: str | None = None,
    windows_strategy: str = InterpreterStrategy.GIT_BASH.value,
    wsl_distribution: str = "",
    which: Callable[[str], str | None] | None = None,
    exists: Callable[[str], bool] | None = None,
) -> PlatformProfile:
    system = system_name or platform.system()
    which_func = which or shutil.which
    exists_func = exists or os.path.isfile
    family = _SYSTEM_FAMILIES.get(system)
    if family is None:
        logger.error("Unsupported platform system=%s", system)
        raise failure(
            FailureKind.UNSUPPORTED_PLATFORM,
            f"LaunchDeck does not support the {system or 'unknown'} platform.",
            hint="Run the launcher on macOS, Windows or Linux.",
        )

    if family != OsFamily.WINDOWS:
        bash = _find_posix_bash(which_func, exists_func)
        if not bash:
            logger.error("No bash interpreter found system=%s", system)
            raise failure(
                FailureKind.INTERPRETER_NOT_FOUND,
                "bash was not found.",
                hint="Install bash and ensure it is available in PATH.",
            )
        profile = PlatformProfile(
            family=family,
            strategy=InterpreterStrategy.POSIX,
            interpreter=(bash, "-c"),
        )
        logger.debug("Resolved platform profile %s", profile)
        return profile

    if windows_strategy == InterpreterStrategy.WSL.value:
        wsl_binary = which_func("wsl.exe")
        if not wsl_binary:
            logger.error("wsl.exe not found for wsl interpreter strategy")
            raise failure(
                FailureKind.INTERPRETER_NOT_FOUND,
                "wsl.exe was not found.",
                hint="Install WSL2 or switch windows_interpreter to git-bash.",
            )
        interpreter = [wsl_binary]
        if wsl_distribution:
            interpreter.extend(["-d", wsl_distribution])
        interpreter.extend(["--", "bash", "-c"])
        profile = PlatformProfile(
            family=family,
            strategy=InterpreterStrategy.WSL,
            interpreter=tuple(interpreter),
            mount_prefix="/mnt/",
        )
        logger.debug("Resolved platform profile %s", profile)
        return profile

    for location in GIT_BASH_LOCATIONS:
        if exists_func(location):
            profile = PlatformProfile(
                family=family,
                strategy=InterpreterStrategy.GIT_BASH,
                interpreter=(location, "-c"),
                mount_prefix="/",
            )
            logger.debug("Resolved platform profile %s", profile)
            return profile

    logger.error("Git Bash not found at %s", ", ".join(GIT_BASH_LOCATIONS))
    raise failure(
        FailureKind.INTERPRETER_NOT_FOUND,
        "Git Bash was not found.",
        hint=f"Install Git for Windows from {GIT_FOR_WINDOWS_URL} and restart LaunchDeck.",
    )


class PlatformResolver:
    """Resolve the platform profile once and hand out the cached result."""

    def __init__(self, resolve: Callable[[], PlatformProfile] = resolve_platform_profile) -> None:
        self._resolve = resolve
        self._profile: PlatformProfile | None = None
        self._error: LaunchDeckError | None = None

    @property
    def resolved(self) -> bool:
        return self._profile is not None or self._error is not None

    def resolve(self) -> PlatformProfile:
        if self._error is not None:
            raise self._error
        if self._profile is None:
            try:
                self._profile = self._resolve()
            except LaunchDeckError as exc:
                self._error = exc
                raise
        return self._profile
