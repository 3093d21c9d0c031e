"""Login-shell PATH capture for GUI launches."""

from __future__ import annotations

import logging as py_logging
import os
import platform
from collections.abc import MutableMapping
from dataclasses import dataclass

from launchdeck.constants import LOGIN_SHELL_TIMEOUT_SECONDS
from launchdeck.errors import FailureKind
from launchdeck.runtime.executor import ProcessExecutor
from launchdeck.ui.services.security import sanitize_log_text

logger = py_logging.getLogger(__name__)

_MARKER = "__LAUNCHDECK_PATH__"
_FALLBACK_SHELL = "/bin/sh"


@dataclass(frozen=True)
class NormalizationResult:
    applied: bool
    path: str
    reason: str = ""


def login_shell(environ: MutableMapping[str, str]) -> str:
    shell = environ.get("SHELL", "").strip()
    return shell or _FALLBACK_SHELL


def build_path_query(shell: str) -> list[str]:
    # Interactive rc files may print banners, so the value is fenced by markers.
    script = f"printf '{_MARKER}%s{_MARKER}' \"$PATH\""
    return [shell, "-ilc", script]


def extract_path(stdout: str) -> str:
    start = stdout.find(_MARKER)
    if start < 0:
        return ""
    start += len(_MARKER)
    end = stdout.find(_MARKER, start)
    if end < 0:
        return ""
    return stdout[start:end].strip()


def normalize_environment(
    environ: MutableMapping[str, str] | None = None,
    *,
    system_name: str | None = None,
    executor: ProcessExecutor | None = None,
    timeout_seconds: float = LOGIN_SHELL_TIMEOUT_SECONDS,
) -> NormalizationResult:
    """Replace PATH with the one a fully initialized login shell would see."""
    target = os.environ if environ is None else environ
    original = target.get("PATH", "")
    system = system_name or platform.system()
    if system == "Windows":
        logger.debug("Environment normalization skipped on Windows")
        return NormalizationResult(applied=False, path=original, reason="windows")

    run = executor or ProcessExecutor()
    command = build_path_query(login_shell(target))
    result = run.run(command, env=target, timeout_seconds=timeout_seconds)
    if not result.ok:
        logger.warning(
            "%s: login shell PATH query failed (%s); keeping PATH=%s",
            FailureKind.ENVIRONMENT_NOT_NORMALIZED.value,
            sanitize_log_text(result.detail),
            original,
        )
        return NormalizationResult(applied=False, path=original, reason=result.detail)

    resolved = extract_path(result.stdout)
    if not resolved:
        logger.warning(
            "%s: login shell returned no PATH; keeping PATH=%s",
            FailureKind.ENVIRONMENT_NOT_NORMALIZED.value,
            original,
        )
        return NormalizationResult(applied=False, path=original, reason="empty PATH from login shell")

    target["PATH"] = resolved
    logger.info("Normalized PATH from login shell")
    logger.debug("PATH=%s", resolved)
    return NormalizationResult(applied=True, path=resolved)
