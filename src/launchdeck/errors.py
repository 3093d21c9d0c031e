"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    CONTAINER_ERROR = 5
    READINESS_ERROR = 6
    VALIDATION_ERROR = 7
    UNSUPPORTED_PLATFORM = 8
    INTERPRETER_NOT_FOUND = 9
    PERMISSION_ERROR = 10


class FailureKind(str, Enum):
    UNSUPPORTED_PLATFORM = "unsupported-platform"
    INTERPRETER_NOT_FOUND = "interpreter-not-found"
    RUNTIME_UNAVAILABLE = "runtime-unavailable"
    CONTAINER_START_FAILED = "container-start-failed"
    PORT_NOT_READY = "port-not-ready"
    CONTAINER_STOP_FAILED = "container-stop-failed"
    PERMISSION_GRANT_FAILED = "permission-grant-failed"
    CONTENT_LOAD_FAILED = "content-load-failed"
    ENVIRONMENT_NOT_NORMALIZED = "environment-not-normalized"
    UNEXPECTED = "unexpected"


_KIND_EXIT_CODES = {
    FailureKind.UNSUPPORTED_PLATFORM: ExitCode.UNSUPPORTED_PLATFORM,
    FailureKind.INTERPRETER_NOT_FOUND: ExitCode.INTERPRETER_NOT_FOUND,
    FailureKind.RUNTIME_UNAVAILABLE: ExitCode.RUNTIME_ERROR,
    FailureKind.CONTAINER_START_FAILED: ExitCode.CONTAINER_ERROR,
    FailureKind.PORT_NOT_READY: ExitCode.READINESS_ERROR,
    FailureKind.CONTAINER_STOP_FAILED: ExitCode.CONTAINER_ERROR,
    FailureKind.PERMISSION_GRANT_FAILED: ExitCode.PERMISSION_ERROR,
}

# Kinds that are logged and never interrupt the surrounding sequence.
NON_FATAL_KINDS = frozenset(
    {
        FailureKind.CONTAINER_STOP_FAILED,
        FailureKind.CONTENT_LOAD_FAILED,
        FailureKind.ENVIRONMENT_NOT_NORMALIZED,
    }
)


def exit_code_for(kind: FailureKind) -> ExitCode:
    return _KIND_EXIT_CODES.get(kind, ExitCode.RUNTIME_ERROR)


@dataclass
class LaunchDeckError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""
    kind: FailureKind = FailureKind.UNEXPECTED

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message

    @property
    def fatal(self) -> bool:
        return self.kind not in NON_FATAL_KINDS


def failure(kind: FailureKind, message: str, *, hint: str = "") -> LaunchDeckError:
    """Build an error whose exit code follows its failure kind."""
    return LaunchDeckError(message, code=exit_code_for(kind), hint=hint, kind=kind)


def user_facing_error(message: str, *, hint: str = "") -> str:
    message = message.rstrip(".")
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
