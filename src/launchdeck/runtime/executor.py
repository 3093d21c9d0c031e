"""External command execution that always resolves to a result."""

from __future__ import annotations

import logging as py_logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from launchdeck.constants import COMMAND_TIMEOUT_SECONDS
from launchdeck.ui.services.security import command_for_log, sanitize_log_text

logger = py_logging.getLogger(__name__)

SubprocessRunner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class ExecutionResult:
    command: list[str]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    error: str = ""
    timed_out: bool = False

    @property
    def launched(self) -> bool:
        return self.returncode is not None

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.error

    @property
    def has_warning(self) -> bool:
        return self.ok and bool(self.stderr.strip())

    @property
    def detail(self) -> str:
        """Most useful human-readable description of a failure."""
        if self.error:
            return self.error
        stderr = self.stderr.strip()
        if stderr:
            return stderr
        if self.returncode not in (None, 0):
            return f"exited with code {self.returncode}"
        return ""


def background_subprocess_kwargs() -> dict[str, object]:
    """Keep spawned consoles hidden on Windows."""
    if os.name != "nt":
        return {}
    startupinfo = subprocess.STARTUPINFO()  # type: ignore[attr-defined]
    startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW  # type: ignore[attr-defined]
    startupinfo.wShowWindow = subprocess.SW_HIDE  # type: ignore[attr-defined]
    return {
        "startupinfo": startupinfo,
        "creationflags": subprocess.CREATE_NO_WINDOW,  # type: ignore[attr-defined]
    }


class ProcessExecutor:
    def __init__(
        self,
        *,
        runner: SubprocessRunner = subprocess.run,
        timeout_seconds: float = COMMAND_TIMEOUT_SECONDS,
    ) -> None:
        self.runner = runner
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        command: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
    ) -> ExecutionResult:
        argv = [str(part) for part in command]
        effective_timeout = timeout_seconds or self.timeout_seconds
        logger.debug("Running command=%s timeout=%ss", command_for_log(argv), effective_timeout)
        if not argv:
            return ExecutionResult(command=argv, returncode=None, error="Command is empty.")

        try:
            completed = self.runner(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                env=dict(env) if env is not None else None,
                timeout=effective_timeout,
                **background_subprocess_kwargs(),
            )
        except subprocess.TimeoutExpired:
            logger.error("Command timed out command=%s timeout=%ss", command_for_log(argv), effective_timeout)
            return ExecutionResult(
                command=argv,
                returncode=None,
                error=f"Command timed out after {effective_timeout:g}s.",
                timed_out=True,
            )
        except OSError as exc:
            logger.error("Command could not be launched command=%s error=%s", command_for_log(argv), exc)
            return ExecutionResult(
                command=argv,
                returncode=None,
                error=f"Command could not be launched: {exc.strerror or exc}",
            )
        except ValueError as exc:
            # Embedded NUL bytes or bad arguments are rejected before exec.
            logger.error("Command rejected command=%s error=%s", command_for_log(argv), exc)
            return ExecutionResult(
                command=argv,
                returncode=None,
                error=f"Command could not be launched: {exc}",
            )

        result = ExecutionResult(
            command=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.returncode != 0:
            logger.warning(
                "Command failed code=%s command=%s stderr=%s",
                result.returncode,
                command_for_log(argv),
                sanitize_log_text(result.stderr),
            )
        elif result.has_warning:
            logger.warning(
                "Command succeeded with stderr output command=%s stderr=%s",
                command_for_log(argv),
                sanitize_log_text(result.stderr),
            )
        else:
            logger.debug("Command succeeded command=%s stdout=%s", command_for_log(argv), sanitize_log_text(result.stdout))
        return result
