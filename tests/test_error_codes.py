from __future__ import annotations

from launchdeck.errors import (
    ExitCode,
    FailureKind,
    LaunchDeckError,
    exit_code_for,
    failure,
    user_facing_error,
)


def test_exit_codes_are_deterministic() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.CONTAINER_ERROR) == 5
    assert int(ExitCode.UNSUPPORTED_PLATFORM) == 8
    assert int(ExitCode.INTERPRETER_NOT_FOUND) == 9
    assert int(ExitCode.PERMISSION_ERROR) == 10


def test_failure_kinds_map_to_exit_codes() -> None:
    assert exit_code_for(FailureKind.RUNTIME_UNAVAILABLE) == ExitCode.RUNTIME_ERROR
    assert exit_code_for(FailureKind.CONTAINER_START_FAILED) == ExitCode.CONTAINER_ERROR
    assert exit_code_for(FailureKind.PORT_NOT_READY) == ExitCode.READINESS_ERROR
    assert exit_code_for(FailureKind.PERMISSION_GRANT_FAILED) == ExitCode.PERMISSION_ERROR
    assert exit_code_for(FailureKind.UNEXPECTED) == ExitCode.RUNTIME_ERROR


def test_error_string_contains_hint() -> None:
    err = LaunchDeckError("bash not found", code=ExitCode.INTERPRETER_NOT_FOUND, hint="Install Git")
    assert "Install Git" in str(err)


def test_failure_builder_sets_code_from_kind() -> None:
    err = failure(FailureKind.UNSUPPORTED_PLATFORM, "Plan 9 is not supported")

    assert err.code == ExitCode.UNSUPPORTED_PLATFORM
    assert err.kind is FailureKind.UNSUPPORTED_PLATFORM
    assert err.fatal


def test_stop_and_content_failures_are_not_fatal() -> None:
    assert not failure(FailureKind.CONTAINER_STOP_FAILED, "stop failed").fatal
    assert not failure(FailureKind.CONTENT_LOAD_FAILED, "blank page").fatal
    assert not failure(FailureKind.ENVIRONMENT_NOT_NORMALIZED, "no PATH").fatal


def test_user_facing_error_template() -> None:
    text = user_facing_error("Docker is not installed.", hint="Install Docker")
    assert text == "Error: Docker is not installed. Next step: Install Docker"


def test_user_facing_error_without_hint() -> None:
    assert user_facing_error("Port not ready") == "Error: Port not ready."
